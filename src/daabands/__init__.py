# DAA bands REPL - detect-and-avoid bands over a streaming state table
__version__ = "0.1.0"
