"""hybrid-inference: local and cloud AI capabilities behind one provider interface."""

__version__ = '0.1.0'
