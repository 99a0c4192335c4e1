"""Tag parsing mixins for the Stache parser.

- core: section nesting stack (LIFO close-tag checks)
- sections: {{#name}} / {{^name}} / {{/name}}
- tags: variables, partials, comments, pragmas
"""

from __future__ import annotations

from stache.parser.blocks.core import BlockStackMixin
from stache.parser.blocks.sections import SectionParsingMixin
from stache.parser.blocks.tags import LeafTagParsingMixin

__all__ = ["BlockStackMixin", "LeafTagParsingMixin", "SectionParsingMixin"]
