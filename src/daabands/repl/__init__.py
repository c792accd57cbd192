# REPL package
