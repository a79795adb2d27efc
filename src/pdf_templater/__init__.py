# SPDX-License-Identifier: Apache-2.0
"""Fill positioned text variables into a PDF template."""

__version__ = "0.1.0"
