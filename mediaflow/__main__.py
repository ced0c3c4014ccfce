"""
mediaflow 的入口点，当以 python -m mediaflow 运行时。
"""

from mediaflow.cli.commands import app

if __name__ == "__main__":
    app()
