from cratedeck.cli import main

raise SystemExit(main())
