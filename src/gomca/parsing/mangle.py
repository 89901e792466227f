# Characters llvm-mca's label syntax rejects: receiver parentheses, pointer
# stars, generic brackets, package path slashes, separators.
_LABEL_TRANSLATION = str.maketrans({c: "_" for c in "()*[]/ ."})


def mangle(symbol: str) -> str:
    """
    Turns an objdump symbol descriptor into an llvm-mca label.
    pkg.Func(int) -> pkg_Func_int_:
    """
    return symbol.translate(_LABEL_TRANSLATION) + ":"
