"""
Lambda Kit: configuration, observability and request pipeline for
API Gateway backed Lambda functions.
"""

__version__ = '1.0.0'
