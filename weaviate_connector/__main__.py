# weaviate_connector/__main__.py
# SPDX-License-Identifier: Apache-2.0
from weaviate_connector.cli import main

raise SystemExit(main())
