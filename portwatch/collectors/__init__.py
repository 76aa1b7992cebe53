from .channel import Channel, ChannelClosed
from .procfs import PROC_NET_TCP, PROC_NET_TCP6, open_proc_file, read_net_tcp_file
from .generic import collect_listeners
from .loop import PollingServedPortsObserver, PsutilServedPortsObserver
