DIRECTIVE_TAG = '@strudel-of-lilypond@'

LY_SUFFIX = '.ly'
HTML_SUFFIX = '.html'
YAML_SUFFIX = '.yml'

RETURN_ERR = 1


class LilyError(ValueError):
    pass
