"""Pytest configuration file to set up the Python path for testing."""

import sys
from pathlib import Path

# Put backend/app on sys.path so 'nutrient_navigator', 'app' and 'configs' resolve
app_dir = Path(__file__).parent.parent
sys.path.insert(0, str(app_dir))
