"""runask — ask a RunLLM pipeline and stream the answer to the terminal."""

__version__ = "0.1.0"
