"""
使用方式:
    python -m dpanel_client [-c config.yaml]
"""

from dpanel_client.main import cli

if __name__ == "__main__":
    cli()
