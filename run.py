#!/usr/bin/env python3
"""Folder PDF Consolidator Launcher"""

import sys
from pathlib import Path

# Load environment variables FIRST
from dotenv import load_dotenv
load_dotenv()

# Add src directory to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from consolidator import main

if __name__ == "__main__":
    sys.exit(main())
