from remotelog.cli import main

raise SystemExit(main())
