"""
Services package for shrink-ray.

This package holds the "service layer": classes and functions that carry out
one step of converting a file, between the batch pipeline (which decides
what runs and when) and the domain models (what is being converted).

- **Identification (`Identifier`):** classifies inputs by content with libmagic.

- **Tool Selection (`BinaryCache`, `select_tool`):** chooses GraphicsMagick or
  FFmpeg for a MIME type and resolves the binary, honouring `RAY_BIN_*`
  overrides and the configured tool directory.

- **Process Supervision (`ProcessSupervisor`, `InterruptChannel`):** runs one
  compressor invocation while streaming its output, animating progress and
  forwarding Ctrl-C.

- **Conversion (`ConversionTransaction`):** the idempotency check, the
  supervised invocations, and the replace-or-discard decision for one file.

- **Replace (`replace_file`):** swaps a converted file into the place of its
  original without ever destroying the original first.

- **Report (`ReportSink`, `TerminalReport`):** the events the core emits and
  their rendering on a terminal.
"""
