from mariner.cli import main

raise SystemExit(main())
