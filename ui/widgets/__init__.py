from ui.widgets.typing_surface import TypingSurfaceWidget

__all__ = ["TypingSurfaceWidget"]
