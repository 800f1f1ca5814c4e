"""
Hello Lambda entry point (API Gateway REST API).

Deployed with handler ``lambda_function.lambda_handler``; use
``lambda_handler_v2`` behind an HTTP API.
"""

from lambda_kit.handlers.hello_handler import lambda_handler, lambda_handler_v2

__all__ = ['lambda_handler', 'lambda_handler_v2']
