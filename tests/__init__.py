# SPDX-License-Identifier: Apache-2.0
"""
Weaviate connector tests.

Unit tests run against a recording fake of the Weaviate client and
httpx.MockTransport; no cluster is required.
"""
