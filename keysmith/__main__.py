"""
Keysmith - Provider authentication and model configuration

Walks through picking an AI provider, authenticating with it and choosing
the model to use, then stores the result in ~/.keysmith/config.json.

Quick Start:
    pip install -e .
    keysmith auth
"""

from keysmith.cli.cli import main

if __name__ == "__main__":
    main()
