from __future__ import annotations

import sys
import time
from typing import List, Optional

from watermeter.bootstrap import build_app_system
from watermeter.ui.adapters.store_snapshots import (
    active_alarm_rows,
    format_meter_reading,
    threshold_status_rows,
)


def _arg(argv: List[str], name: str) -> Optional[str]:
    if name in argv:
        i = argv.index(name)
        if i + 1 < len(argv):
            return argv[i + 1]
    return None


def main() -> None:
    """
    Start the monitor runtime and print a console status every few seconds.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - Optional CLI usage:
        python -m watermeter.dev.run_app --config path/to/config.yaml --rate 0.0005 --every 5
    """
    argv = sys.argv[1:]
    wiring = build_app_system(config_path=_arg(argv, "--config"))

    rate = _arg(argv, "--rate")
    if rate is not None:
        wiring.controller.apply_rate(float(rate))

    every_s = float(_arg(argv, "--every") or 5.0)

    wiring.runtime.start()
    try:
        while True:
            time.sleep(every_s)
            print(f"\n=== METER {format_meter_reading(wiring.store.live_value)} m3 ===")
            for row in threshold_status_rows(wiring.store):
                print("  " + " | ".join(row))
            for row in active_alarm_rows(wiring.store):
                print("  ALARM " + " | ".join(row))
    except KeyboardInterrupt:
        pass
    finally:
        wiring.runtime.stop()


if __name__ == "__main__":
    main()
