"""
Entry point for the smartpath tutor.

Run with:
    python main.py quiz "Python"
    python main.py plan "微积分"
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from smartpath.cli.main import main

if __name__ == "__main__":
    main()
