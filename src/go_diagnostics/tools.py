TOOL_IMPORT_PATHS = {
    "golint": "github.com/golang/lint/golint",
    "gometalinter": "github.com/alecthomas/gometalinter",
    "gopkgs": "github.com/tpng/gopkgs",
    "govendor": "github.com/kardianos/govendor",
}


def missing_tool_prompt(tool: str) -> str:
    import_path = TOOL_IMPORT_PATHS.get(tool)
    if import_path is None:
        return f'The "{tool}" command is not available. Install it and try again.'
    return f'The "{tool}" command is not available. Install it with: go get -u {import_path}'
