"""Exception classes for the composition engine."""


class CompoforgeError(Exception):
    """Base exception for all engine errors."""

    pass


class DecodeError(CompoforgeError):
    """Raised when image bytes are malformed or cannot be decoded."""

    pass


class RenderError(CompoforgeError):
    """Raised when a pixel buffer or drawing surface cannot be acquired."""

    pass


class EmptyExportError(CompoforgeError):
    """Raised when an export is requested but no layer is visible."""

    pass


class LayerNotFoundError(CompoforgeError, KeyError):
    """Raised when an operation names a layer id the store does not hold."""

    def __init__(self, layer_id: str):
        super().__init__(layer_id)
        self.layer_id = layer_id

    def __str__(self) -> str:
        return f"Layer '{self.layer_id}' not found"


class ServiceError(CompoforgeError):
    """Base exception for external image service contract violations."""

    pass


class GenerationError(ServiceError):
    """Raised when the generation service returns no image."""

    pass


class EditError(ServiceError):
    """Raised when the edit service returns no image part."""

    pass


class MaskError(ServiceError):
    """Raised when the mask service returns no mask image."""

    pass


class ServiceConfigurationError(CompoforgeError):
    """Raised when an image service is used without being configured."""

    pass
