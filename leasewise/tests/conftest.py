"""
Test configuration for LeaseWise tests.

Puts the project root on sys.path so 'from leasewise...' resolves whether
pytest is run from the project root or from leasewise/.
"""
import sys
from pathlib import Path

_project_root = Path(__file__).parent.parent.parent        # .../package/

if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))
