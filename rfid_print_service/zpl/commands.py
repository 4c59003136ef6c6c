"""
ZPL Commands
============

Builders for the individual instructions a label layout is made of. Each
returns one line of the command stream; content is embedded verbatim, with no
check against the physical label bounds.
"""

from io import BytesIO
from typing import Iterable

LABEL_START = '^XA'
LABEL_END = '^XZ'


def box(x: int, y: int, width: int, height: int, thickness: int = 6) -> str:
    """Draw a rectangle (^GB)."""
    return f"^FO{x},{y}^GB{width},{height},{thickness}^FS"


def text(x: int, y: int, height: int, width: int, content: str) -> str:
    """Draw text in the scalable font 0 (^A0)."""
    return f"^FO{x},{y}^A0N,{height},{width}^FD{content}^FS"


def barcode128(x: int, y: int, height: int, content: str, module_width: int = 3) -> str:
    """Draw a Code 128 barcode with its human readable line below it."""
    return f"^FO{x},{y}^BY{module_width}^BCN,{height},Y,N,N^FD{content}^FS"


def qr_code(x: int, y: int, magnification: int, content: str, error_level: str = 'Q') -> str:
    """
    Draw a model 2 QR code.

    Args:
        magnification: Module size in dots (1-10)
        error_level: H, Q, M or L
    """
    return f"^FO{x},{y}^BQN,2,{magnification}^FD{error_level}A,{content}^FS"


def rfid_write(payload: str, start_block: int = 1, byte_count: int = 8, memory_bank: int = 4) -> str:
    """Encode a hex payload into the tag (^RFW)."""
    return f"^RFW,H,{start_block},{byte_count},{memory_bank}^FD{payload}^FS"


def graphic_field(x: int, y: int, image_data: bytes, width: int = None) -> str:
    """
    Convert an image to an ASCII hex graphic field (^GFA).

    Args:
        image_data: Raw image bytes (PNG/JPEG)
        width: Target width in dots (optional, keeps aspect ratio)

    Returns:
        ZPL instruction string
    """
    from PIL import Image

    img = Image.open(BytesIO(image_data))

    if width:
        ratio = width / img.width
        img = img.resize((width, int(img.height * ratio)), Image.Resampling.LANCZOS)

    # Convert to 1-bit
    img = img.convert('1')

    w, h = img.size
    bytes_per_row = (w + 7) // 8

    hex_data = []
    for y_px in range(h):
        row_bytes = []
        for x_byte in range(bytes_per_row):
            byte = 0
            for bit in range(8):
                x_px = x_byte * 8 + bit
                if x_px < w:
                    if img.getpixel((x_px, y_px)) == 0:  # Black pixel
                        byte |= (1 << (7 - bit))
            row_bytes.append(byte)
        hex_data.append(''.join(f'{b:02X}' for b in row_bytes))

    total_bytes = bytes_per_row * h
    return f"^FO{x},{y}^GFA,{total_bytes},{total_bytes},{bytes_per_row},{''.join(hex_data)}^FS"


def label(instructions: Iterable[str]) -> str:
    """Wrap instructions into a complete label."""
    lines = [LABEL_START, *instructions, LABEL_END]
    return '\n'.join(lines) + '\n'
