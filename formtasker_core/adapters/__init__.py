from .playwright_adapter import PlaywrightDocumentAdapter, open_page, robust_fill_field

__all__ = ["PlaywrightDocumentAdapter", "open_page", "robust_fill_field"]
