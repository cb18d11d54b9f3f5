from .converter import ProjectConverter, fix_shared_imports

__all__ = ["ProjectConverter", "fix_shared_imports"]
