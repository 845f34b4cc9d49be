import io

import fitz
import pytest
from PIL import Image

from receipt_scanner.core.errors import CapabilityUnavailable, ReadError, RenderError, UnsupportedType
from receipt_scanner.core.models import InputFile
from receipt_scanner.core.normalizer import FileNormalizer


def make_pdf(sizes):
    doc = fitz.open()
    for width, height in sizes:
        page = doc.new_page(width=width, height=height)
        page.insert_text((20, 40), "TOTAL 12.50")
    data = doc.tobytes()
    doc.close()
    return data


class MissingRasterizer:
    def available(self):
        return False

    def render_page_jpeg(self, *args, **kwargs):
        raise AssertionError("should not be called")


@pytest.mark.parametrize("media_type", ["image/jpeg", "image/png", "image/webp"])
def test_image_passes_through_untouched(media_type):
    data = b"\x89PNG not really decoded"
    payload = FileNormalizer().normalize(InputFile("r.png", media_type, data=data))
    assert payload.extraction_image == data
    assert payload.original_bytes == data
    assert payload.original_mime_type == media_type


def test_images_do_not_need_the_rasterizer():
    normalizer = FileNormalizer(rasterizer=MissingRasterizer())
    payload = normalizer.normalize(InputFile("r.jpg", "image/jpeg", data=b"jpeg"))
    assert payload.extraction_image == b"jpeg"


def test_pdf_renders_first_page_only_as_jpeg():
    data = make_pdf([(200, 300), (400, 100), (50, 50)])
    payload = FileNormalizer().normalize(InputFile("r.pdf", "application/pdf", data=data))

    assert payload.original_bytes == data
    assert payload.original_mime_type == "application/pdf"
    assert payload.extraction_image[:2] == b"\xff\xd8"
    with Image.open(io.BytesIO(payload.extraction_image)) as img:
        assert img.format == "JPEG"
        assert img.size == (400, 600)


def test_pdf_render_scale_is_configurable():
    data = make_pdf([(100, 150)])
    payload = FileNormalizer(scale=1.0, jpeg_quality=50).normalize(
        InputFile("r.pdf", "application/pdf", data=data))
    with Image.open(io.BytesIO(payload.extraction_image)) as img:
        assert img.size == (100, 150)


def test_corrupt_pdf_raises_render_error():
    with pytest.raises(RenderError):
        FileNormalizer().normalize(InputFile("bad.pdf", "application/pdf", data=b"%PDF-1.4 garbage"))


def test_unsupported_type():
    with pytest.raises(UnsupportedType):
        FileNormalizer().normalize(InputFile("notes.txt", "text/plain", data=b"hello"))


def test_unsupported_type_is_checked_before_reading(tmp_path):
    missing = InputFile("notes.txt", "text/plain", path=tmp_path / "missing.txt")
    with pytest.raises(UnsupportedType):
        FileNormalizer().normalize(missing)


def test_read_error(tmp_path):
    missing = InputFile("gone.jpg", "image/jpeg", path=tmp_path / "gone.jpg")
    with pytest.raises(ReadError):
        FileNormalizer().normalize(missing)


def test_missing_rasterizer_reports_capability_unavailable():
    normalizer = FileNormalizer(rasterizer=MissingRasterizer())
    with pytest.raises(CapabilityUnavailable):
        normalizer.normalize(InputFile("r.pdf", "application/pdf", data=make_pdf([(100, 100)])))


def test_input_file_from_path(tmp_path):
    path = tmp_path / "Receipt.PDF"
    path.write_bytes(b"%PDF")
    f = InputFile.from_path(path)
    assert f.name == "Receipt.PDF"
    assert f.media_type == "application/pdf"
    assert f.read_bytes() == b"%PDF"
