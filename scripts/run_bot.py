#!/usr/bin/env python3
"""Run the DCA engine in the foreground until interrupted."""

import signal
import sys
import threading
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dca_app.config.loader import ConfigLoader
from dca_app.engine import DcaEngine
from dca_app.logging import configure_logging


def main():
    """Start the bot and block until SIGINT or SIGTERM."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    config = ConfigLoader.create(config_dir).build_engine_config()
    configure_logging(level=config.logging.level, format_json=config.logging.format_json)

    engine = DcaEngine(config=config)
    result = engine.start()
    if not result["success"]:
        print(f"❌ {result['message']}")
        sys.exit(1)

    print(f"🚀 {result['message']}")
    shutdown = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: shutdown.set())
    signal.signal(signal.SIGTERM, lambda *_: shutdown.set())
    shutdown.wait()

    engine.close()
    print("🛑 DCA bot stopped")


if __name__ == "__main__":
    main()
