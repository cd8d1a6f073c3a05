from boot_time_report.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
