"""Release preparation: version algebra, version files and branch workflow."""

from __future__ import annotations
