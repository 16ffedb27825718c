# weaviate_connector/operations/__init__.py
# SPDX-License-Identifier: Apache-2.0
"""Request translators, one module per resource."""

from weaviate_connector.operations.base import OperationCall, Record, Translator

__all__ = ["OperationCall", "Record", "Translator"]
