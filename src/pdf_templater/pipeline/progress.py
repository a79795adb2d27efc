# SPDX-License-Identifier: Apache-2.0
"""Progress callback protocol for batch generation."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressCallback(Protocol):
    """Progress callback protocol.

    ``stage`` is ``"render"`` while rows are rendered and ``"package"``
    while the archive is written.
    """

    def __call__(
        self,
        stage: str,
        current: int,
        total: int,
        message: str = "",
    ) -> None: ...
