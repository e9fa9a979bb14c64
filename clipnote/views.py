"""
Presentation models and HTML views for comments and library items.

The reference service renders the initial comment list with these
functions and the client renders incremental additions with the same ones,
so both always produce identical markup.
"""

from typing import Iterable

from jinja2 import Environment

from .categories import CategoryRegistry
from .markup import plain_text, shorten, summary
from .models import Comment, LibraryItem, LibrarySnapshot
from .timecode import format_time

TOOLTIP_TEXT_LENGTH = 80
LIBRARY_TEXT_LENGTH = 120
EMPTY_COMMENTS_TEXT = "No comments yet."

_env = Environment(autoescape=True, trim_blocks=True, lstrip_blocks=True)

_COMMENT_TEMPLATE = _env.from_string("""\
<div class="clipnote-comment-item card mb-2" id="clipnote-comment-{{ c.id }}">
<div class="card-body">
<div class="d-flex justify-content-between align-items-start">
<div class="flex-grow-1">
<a href="#" class="clipnote-timestamp-link badge text-white me-1 clipnote-badge-{{ c.category }}" \
data-timestamp="{{ c.timestamp }}" style="background-color:{{ c.color }}">\
<i class="fa fa-clock-o"></i> {{ c.time }}</a>
<span class="badge me-2 clipnote-badge-{{ c.category }}" \
style="background-color:{{ c.color }};color:#fff;">{{ c.label }}</span>
<small class="text-muted">{{ c.author }} - {{ c.created }}</small>
</div>
{% if c.can_delete %}
<button class="btn btn-sm btn-danger clipnote-delete-comment" data-commentid="{{ c.id }}">\
<i class="fa fa-trash"></i></button>
{% endif %}
</div>
<div class="mt-2 mb-0">{{ c.body|safe }}</div>
</div></div>""")

_EMPTY_TEMPLATE = _env.from_string('<p class="text-muted">{{ text }}</p>')

_LIBRARY_ITEM_TEMPLATE = _env.from_string("""\
<div class="clipnote-library-item d-flex align-items-start p-2 mb-1" \
data-commenttext="{{ i.text }}" data-commenttype="{{ i.category }}" data-itemid="{{ i.id }}">
<span class="badge me-2" style="background-color:{{ i.color }};color:#fff;">{{ i.label }}</span>
<span class="flex-grow-1 small clipnote-library-item-insert" role="button">{{ i.excerpt }}</span>
{% if i.can_delete %}
<button class="btn btn-sm btn-outline-danger ms-2 clipnote-library-item-delete" \
data-itemid="{{ i.id }}"><i class="fa fa-trash"></i></button>
{% endif %}
</div>""")

_LIBRARY_PANEL_TEMPLATE = _env.from_string("""\
<div class="clipnote-library-inner p-3">
<div class="d-flex justify-content-between align-items-center mb-3">
<h5 class="mb-0">Comment Library</h5>
<button id="clipnote-library-close" class="btn btn-sm btn-outline-secondary"><i class="fa fa-times"></i></button>
</div>
<input type="text" id="clipnote-library-search" class="form-control form-control-sm mb-2" \
placeholder="Search comments...">
<div class="mb-3">
<span class="badge bg-secondary clipnote-library-filter active me-1" data-filtertype="all" role="button">All</span>
{% for key, info in categories %}
<span class="badge clipnote-library-filter me-1" data-filtertype="{{ key }}" role="button" \
style="background-color:{{ info.color }};color:#fff;">{{ info.label }}</span>
{% endfor %}
</div>
<div class="clipnote-library-section">
<h6>My Comments</h6>
{% for html in personal %}
{{ html|safe }}
{% else %}
<p class="text-muted small">No personal comments saved.</p>
{% endfor %}
</div>
{% if show_shared %}
<hr>
<div class="clipnote-library-section">
<h6>Course Comments</h6>
{% for html in shared %}
{{ html|safe }}
{% else %}
<p class="text-muted small">No shared comments yet.</p>
{% endfor %}
</div>
{% endif %}
</div>""")

_SCOPE_PROMPT_TEMPLATE = _env.from_string("""\
<div class="clipnote-save-scope-panel card p-2 mb-2"><div class="p-3">
<p>Save this comment to:</p>
<button class="btn btn-primary me-2 clipnote-save-scope" data-scope="personal">My Library</button>
{% if course_id > 0 %}
<button class="btn btn-outline-primary clipnote-save-scope" data-scope="course">Course Library</button>
{% endif %}
</div></div>""")


# =============================================================================
# Comments
# =============================================================================


def comment_model(comment: Comment, registry: CategoryRegistry, can_delete: bool = True) -> dict:
    """Everything a comment entry shows, with the category already resolved."""
    key = registry.key_for(comment.category.value)
    info = registry.get(key)
    return {
        "id": comment.id,
        "timestamp": comment.timestamp,
        "time": format_time(comment.timestamp),
        "category": key,
        "label": info.label,
        "color": info.color,
        "author": comment.author_display_name,
        "created": comment.created_display,
        "body": comment.body,
        "can_delete": can_delete,
    }


def render_comment(comment: Comment, registry: CategoryRegistry, can_delete: bool = True) -> str:
    return _COMMENT_TEMPLATE.render(c=comment_model(comment, registry, can_delete))


def render_empty_state() -> str:
    return _EMPTY_TEMPLATE.render(text=EMPTY_COMMENTS_TEXT)


def render_comment_list(
    comments: Iterable[Comment],
    registry: CategoryRegistry,
    can_delete: bool = True,
) -> str:
    """Full comment list block as served with the grading page."""
    entries = [render_comment(c, registry, can_delete) for c in comments]
    inner = "\n".join(entries) if entries else render_empty_state()
    return f'<div id="clipnote-comments-list">\n{inner}\n</div>'


def marker_tooltip(comment: Comment, registry: CategoryRegistry) -> str:
    """Tooltip text: ``[Label] MM:SS - excerpt``."""
    info = registry.get(comment.category.value)
    excerpt = summary(comment.body, TOOLTIP_TEXT_LENGTH)
    return f"[{info.label}] {format_time(comment.timestamp)} - {excerpt}"


# =============================================================================
# Library
# =============================================================================


def library_item_model(item: LibraryItem, registry: CategoryRegistry) -> dict:
    key = registry.key_for(item.category.value)
    info = registry.get(key)
    text = plain_text(item.text)
    return {
        "id": item.id,
        "text": item.text,
        "plain": text,
        "excerpt": shorten(text, LIBRARY_TEXT_LENGTH),
        "category": key,
        "label": info.label,
        "color": info.color,
        "can_delete": item.owned_by_current_user,
    }


def render_library_item(item: LibraryItem, registry: CategoryRegistry) -> str:
    return _LIBRARY_ITEM_TEMPLATE.render(i=library_item_model(item, registry))


def render_library_panel(
    snapshot: LibrarySnapshot,
    registry: CategoryRegistry,
    course_id: int = 0,
) -> str:
    return _LIBRARY_PANEL_TEMPLATE.render(
        categories=registry.items(),
        personal=[render_library_item(i, registry) for i in snapshot.personal],
        shared=[render_library_item(i, registry) for i in snapshot.shared],
        show_shared=course_id > 0,
    )


def render_scope_prompt(course_id: int = 0) -> str:
    return _SCOPE_PROMPT_TEMPLATE.render(course_id=course_id)
