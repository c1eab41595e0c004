from .driver import CompileResult, CompilerDriver, build_arguments, decode_text, include_options
