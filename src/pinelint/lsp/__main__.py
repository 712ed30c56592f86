"""
Entry point for running the pinelint LSP server as a module.

Usage:
    python -m pinelint.lsp
    python -m pinelint.lsp --tcp --port 2087
"""

from pinelint.lsp.server import main

if __name__ == "__main__":
    main()
