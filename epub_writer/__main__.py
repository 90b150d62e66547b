from epub_writer.cli import main

raise SystemExit(main())
