# modloader/app/paths.py
from __future__ import annotations
from pathlib import Path



# Root directory structure constants
PACKAGE_DIR = Path(__file__).resolve().parent.parent # modloader/
ROOT_DIR = PACKAGE_DIR.parent                        # repository root
