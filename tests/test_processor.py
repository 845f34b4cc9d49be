import base64

import pytest

from receipt_scanner.core.errors import BatchInProgress, ExtractionFailure
from receipt_scanner.core.models import InputFile, ReceiptFields
from receipt_scanner.core.normalizer import FileNormalizer
from receipt_scanner.core.processor import IngestionPipeline, discover_files
from receipt_scanner.core.store import ReceiptStore


class FakeClient:
    """Uses the image bytes as the company name; b'fail' fails extraction."""

    def __init__(self, on_extract=None):
        self.seen = []
        self.on_extract = on_extract

    def extract(self, image):
        self.seen.append(image)
        if self.on_extract:
            self.on_extract()
        if image == b"fail":
            raise ExtractionFailure("no candidates")
        return ReceiptFields("2024-01-05", image.decode(), "Restaurant", "Lunch", 9.99)


def image(name, data):
    return InputFile(name, "image/jpeg", data=data)


def make_pipeline(client=None):
    store = ReceiptStore()
    return IngestionPipeline(store, FileNormalizer(), client or FakeClient()), store


def test_all_files_succeed_in_order():
    pipeline, store = make_pipeline()
    result = pipeline.ingest([image("a.jpg", b"A"), image("b.jpg", b"B"), image("c.jpg", b"C")])

    assert [r.company_name for r in store.records] == ["A", "B", "C"]
    assert result.appended == list(store.records)
    assert result.errors == []
    assert store.cursor == 2
    assert store.error is None
    assert store.busy is False


def test_failures_skip_only_their_file(tmp_path):
    client = FakeClient()
    pipeline, store = make_pipeline(client)
    files = [
        image("a.jpg", b"A"),
        InputFile("notes.txt", "text/plain", data=b"x"),
        image("b.jpg", b"fail"),
        InputFile("gone.jpg", "image/jpeg", path=tmp_path / "gone.jpg"),
        image("c.jpg", b"C"),
        InputFile("broken.pdf", "application/pdf", data=b"not a pdf"),
    ]
    result = pipeline.ingest(files)

    assert [r.company_name for r in store.records] == ["A", "C"]
    assert len(store) == len(files) - 4
    assert client.seen == [b"A", b"fail", b"C"]
    assert result.errors == [
        "Unsupported file type: notes.txt. Please upload an image (JPEG, PNG) or a PDF.",
        "Could not extract information from b.jpg. Please check the image or format.",
        "Failed to read file: gone.jpg.",
        "Failed to render PDF: broken.pdf for AI processing. Ensure it is a valid PDF.",
    ]
    # only the latest message is kept
    assert store.error == result.errors[-1]
    assert store.busy is False


def test_unexpected_errors_do_not_abort_batch():
    class ExplodingClient(FakeClient):
        def extract(self, image):
            if image == b"boom":
                raise RuntimeError("kaboom")
            return super().extract(image)

    pipeline, store = make_pipeline(ExplodingClient())
    result = pipeline.ingest([image("x.jpg", b"boom"), image("y.jpg", b"Y")])
    assert [r.company_name for r in store.records] == ["Y"]
    assert store.error == "Failed to process x.jpg. Please ensure images are clear and try again."
    assert len(result.errors) == 1


def test_record_keeps_original_and_preview():
    pipeline, store = make_pipeline()
    pipeline.ingest([image("lunch.jpeg", b"L")])
    record = store.records[0]
    assert record.original_file_name == "lunch.jpeg"
    assert record.original_file_data.mime_type == "image/jpeg"
    assert record.original_file_data.decode() == b"L"
    assert base64.b64decode(record.extraction_image) == b"L"


def test_new_batch_clears_previous_error_and_appends():
    pipeline, store = make_pipeline()
    pipeline.ingest([image("bad.jpg", b"fail")])
    assert store.error is not None

    pipeline.ingest([image("a.jpg", b"A")])
    assert store.error is None
    assert len(store) == 1


def test_busy_flag_gates_new_batches():
    observed = []
    pipeline, store = make_pipeline()

    def reenter():
        observed.append(store.busy)
        with pytest.raises(BatchInProgress):
            pipeline.ingest([image("again.jpg", b"X")])

    pipeline.client = FakeClient(on_extract=reenter)
    pipeline.ingest([image("a.jpg", b"A"), image("b.jpg", b"fail")])

    assert observed == [True, True]
    assert store.busy is False
    assert [r.company_name for r in store.records] == ["A"]


def test_empty_batch_is_noop():
    pipeline, store = make_pipeline()
    store.set_error("old")
    result = pipeline.ingest([])
    assert result.appended == [] and result.errors == []
    assert store.error == "old"


def test_discover_files(tmp_path):
    for name in ["b.PDF", "a.jpg", "notes.txt", "c.png"]:
        (tmp_path / name).write_bytes(b"x")
    (tmp_path / "sub.jpg").mkdir()

    files = discover_files(tmp_path)
    assert [f.name for f in files] == ["a.jpg", "b.PDF", "c.png"]
    assert [f.media_type for f in files] == ["image/jpeg", "application/pdf", "image/png"]
