from .fake_document import ACK_TEXT, FakeDocumentAdapter, build_sample_form

__all__ = ["ACK_TEXT", "FakeDocumentAdapter", "build_sample_form"]
