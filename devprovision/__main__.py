"""Allow ``python -m devprovision``."""

from devprovision.main import main

main()
