"""sdkforge: re-runnable Windows SDK workspace provisioning.

Resolves a versioned SDK package set, materializes headers, libraries and
binaries into a project-local workspace, generates C++/WinRT projections,
provisions a development signing certificate and installs runtime
packages on the host.  ``setup`` creates a workspace; ``restore`` rebuilds
it from the pinned versions in ``sdkforge.yaml``.
"""

__version__ = "0.1.0"
__description__ = "Re-runnable Windows SDK workspace provisioning"

from sdkforge.core.orchestrator import WorkspaceOrchestrator
from sdkforge.cli.app import app as cli

__all__ = ["WorkspaceOrchestrator", "cli", "__version__"]
