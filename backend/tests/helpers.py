"""Image fixtures built with Pillow."""
import io

from PIL import Image


def image_bytes(fmt="PNG", size=(400, 400), color=(200, 30, 30), mode="RGB"):
    image = Image.new(mode, size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def split_image_bytes(size=(400, 400), fmt="PNG"):
    """Left half red, right half blue."""
    image = Image.new("RGB", size, (255, 0, 0))
    image.paste((0, 0, 255), (size[0] // 2, 0, size[0], size[1]))
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def open_image(data):
    return Image.open(io.BytesIO(data))
