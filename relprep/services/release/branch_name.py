from __future__ import annotations

from relprep.core.result import Err, Ok, Result
from relprep.services.release.errors import ReleasePreparationError
from relprep.services.release.model import VERSION_PLACEHOLDER
from relprep.services.release.semver import SemanticVersion


def resolve_release_branch_name(
    template: str, version: SemanticVersion
) -> Result[str, ReleasePreparationError]:
    """Expand `{version}` in a branchName template with the numeric version.

    "v{version}" and 1.2-beta+abc give "v1.2". `{version}` is the only
    placeholder; a template without it is a configuration error.
    """
    if VERSION_PLACEHOLDER not in template:
        return Err(
            ReleasePreparationError(
                kind="invalid_branch_name_setting",
                message=(
                    f"Invalid 'branchName' setting '{template}'. "
                    f"Missing version placeholder '{VERSION_PLACEHOLDER}'."
                ),
                hint="set release.branchName in the version file, e.g. \"v{version}\"",
            )
        )
    return Ok(template.replace(VERSION_PLACEHOLDER, version.version_string))
