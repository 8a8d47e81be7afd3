from pathlib import Path

# wallet_autotest/config/_path.py -> 项目根目录
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
