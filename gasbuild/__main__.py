from gasbuild.cli import main

raise SystemExit(main())
