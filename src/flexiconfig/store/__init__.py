# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Store package - The layered configuration container.

Example:
    >>> from flexiconfig import Settings
    >>> settings = Settings()
    >>> settings.load_json('{"config": {"name": "MyApp"}}')
    >>> settings['config:name']
    'MyApp'
"""

from .core import Settings

__all__ = ["Settings"]
