from . import config, gate, serve

__all__ = ['config', 'gate', 'serve']
