"""Allow ``python -m build_lambda_zip``."""

from build_lambda_zip.main import run


if __name__ == "__main__":
    run()
