#!/usr/bin/env python3
"""
Simple wrapper script to run the convex decomposition CLI.

This lets users run the tool from a checkout without installing it or
worrying about Python module paths.
"""

import sys
from pathlib import Path

# Add the repository root to the path so we can import mesh_acd
sys.path.insert(0, str(Path(__file__).parent))

from mesh_acd import main

if __name__ == "__main__":
    main()
