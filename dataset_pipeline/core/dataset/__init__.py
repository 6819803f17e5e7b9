from .compiler import DatasetCompiler

__all__ = ['DatasetCompiler']
