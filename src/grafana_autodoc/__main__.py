from grafana_autodoc.cli.main import main

raise SystemExit(main())
