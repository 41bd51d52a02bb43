from __future__ import annotations

from iposync.config.loader import load_config
from iposync.jobs import sync_ipos


def main() -> None:
    cfg = load_config()
    sync_ipos.run(cfg)


if __name__ == "__main__":
    main()
