import base64                 # Encode the PNG as a data URL
import ipaddress              # Loopback detection
import io                     # In-memory PNG buffer
import socket                 # Address family constants

import psutil                 # Network interface table
import qrcode                 # QR code generation (renders through Pillow)
from PIL import Image

from pokeblog.Config import QR_MARGIN, QR_SIZE

# =============================================================================
# LAN PAIRING HELPERS
# =============================================================================
# The landing page shows a QR code with the dev server's LAN address so a
# phone on the same WiFi network can open the app.


def get_local_ip(interfaces=None):
    """
    Find the first IPv4 address that is not a loopback address.
    - interfaces: mapping like psutil.net_if_addrs(), read live when omitted
    Falls back to "localhost" when no such address exists.
    """
    if interfaces is None:
        interfaces = psutil.net_if_addrs()

    for addresses in interfaces.values():
        for addr in addresses:
            # Skip IPv6, MAC and loopback addresses
            if addr.family != socket.AF_INET:
                continue
            try:
                ip = ipaddress.ip_address(addr.address)
            except ValueError:
                continue
            if not ip.is_loopback:
                return addr.address
    return "localhost"


def build_pairing_url(ip, port):
    return f"http://{ip}:{port}"


def qr_data_url(text, size=QR_SIZE, margin=QR_MARGIN):
    """
    Encode text as a QR code and return it as a PNG data URL.
    The image is scaled to size x size pixels.
    """
    qr = qrcode.QRCode(border=margin, box_size=10)
    qr.add_data(text)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    img = img.convert("RGB").resize((size, size), Image.NEAREST)  # Keep modules sharp

    buffer = io.BytesIO()
    img.save(buffer, format="PNG", optimize=True)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def pairing_payload(port, interfaces=None):
    """Build the JSON body served by the QR endpoint."""
    local_ip = get_local_ip(interfaces)
    url = build_pairing_url(local_ip, port)
    return {
        "url": url,
        "qrCode": qr_data_url(url),
        "localIP": local_ip,
        "port": port,
    }
