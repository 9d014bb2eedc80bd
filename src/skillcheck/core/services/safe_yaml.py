from typing import Any, Dict

import frontmatter
import yaml


def safe_yaml_load(text: str) -> Any:
    """
    Load a YAML document with yaml.SafeLoader.
    This prevents arbitrary code execution (e.g., !!python/object constructors)
    but does not protect against alias expansion; callers cap input size first.
    """
    return yaml.load(text, Loader=yaml.SafeLoader)


def safe_frontmatter_dumps(metadata: Dict[str, Any], body: str) -> str:
    """
    Serialize a header mapping and body into frontmatter text using SafeDumper.
    Keys keep their insertion order (python-frontmatter sorts them by default).
    The result always ends with a single newline.
    """
    handler = frontmatter.YAMLHandler()
    post = frontmatter.Post(body, handler=handler)
    post.metadata.update(metadata)
    text = frontmatter.dumps(post, handler=handler, Dumper=yaml.SafeDumper, sort_keys=False)
    return text + "\n"
