import logging
import socket

logger = logging.getLogger(__name__)

FALLBACK_IP = "127.0.0.1"


def outbound_ip(probe_host: str = "8.8.8.8", probe_port: int = 80) -> str:
    """
    Local address of the interface used for outbound traffic.
    Connecting a UDP socket sends nothing; it only picks a route.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect((probe_host, probe_port))
            return s.getsockname()[0]
    except OSError as exc:
        logger.warning("Could not determine outbound IP (%s), using %s", exc, FALLBACK_IP)
        return FALLBACK_IP
