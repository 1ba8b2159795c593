import sys
import traceback
from pathlib import Path


def main():
    # Frozen builds ship config.yaml next to the executable
    if getattr(sys, "frozen", False) and "--config" not in sys.argv:
        bundled = Path(sys.executable).resolve().parent / "config.yaml"
        if bundled.exists():
            sys.argv += ["--config", str(bundled)]

    try:
        from watermeter.dev.run_app import main as run_monitor

        run_monitor()
    except Exception:
        traceback.print_exc()
        input("\nPress Enter to close the monitor...")


if __name__ == "__main__":
    main()
