"""
Text posts: persistence rules and the editor/list screen.
"""

import logging
from typing import Any, Callable, List, Optional

from quickshare_api.adapters.table import BasePostsTable, utc_now
from quickshare_api.exceptions import BackendError, NotFoundError, PostValidationError
from quickshare_api.schemas import TextPost
from quickshare_api.services.confirm import ConfirmDialog
from quickshare_api.utils.markup import html_to_text

logger = logging.getLogger(__name__)


class PostService:
    """CRUD over the posts table"""

    def __init__(self, table: BasePostsTable):
        self.table = table

    def list_posts(self) -> List[TextPost]:
        """Every post, newest first."""
        return [TextPost(**row) for row in self.table.select_all()]

    def get(self, post_id: str) -> TextPost:
        row = self.table.get(post_id)
        if row is None:
            raise NotFoundError(f"Post '{post_id}' not found")
        return TextPost(**row)

    def save(self, title: str, content: str, post_id: Optional[str] = None) -> TextPost:
        """
        Insert a new post, or update ``post_id`` when given.

        Only updates stamp ``updated_at``. A blank title is rejected before
        the table is touched.
        """
        if not title or not title.strip():
            raise PostValidationError("Title is required")

        if post_id is None:
            row = self.table.insert({"title": title, "content": content})
            logger.info(f"Created post {row['id']}")
        else:
            row = self.table.update(
                post_id,
                {"title": title, "content": content, "updated_at": utc_now()},
            )
            logger.info(f"Updated post {post_id}")
        return TextPost(**row)

    def delete(self, post_id: str) -> None:
        self.table.delete(post_id)
        logger.info(f"Deleted post {post_id}")

    def plain_text(self, post_id: str) -> str:
        return html_to_text(self.get(post_id).content)


class PostEditorView:
    """
    The posts screen: an editor on top of the full list.

    In new-post mode a successful save clears the editor. In edit mode the
    editor stays populated until ``cancel_edit()``.
    """

    def __init__(self, service: PostService, clipboard: Optional[Callable[[str], Any]] = None):
        self.service = service
        self.clipboard = clipboard
        self.posts: List[TextPost] = []
        self.loading = False
        self.error: Optional[str] = None

        self.title = ""
        self.content = ""
        self.editing: Optional[TextPost] = None
        self.saving = False

        self.post_to_delete: Optional[str] = None
        self.is_deleting = False
        self.dialog: Optional[ConfirmDialog] = None

    @property
    def is_editing(self) -> bool:
        return self.editing is not None

    def load(self) -> List[TextPost]:
        self.loading = True
        self.error = None
        try:
            self.posts = self.service.list_posts()
        except BackendError as e:
            logger.error(f"Error fetching posts: {e}")
            self.error = str(e)
        finally:
            self.loading = False
        return self.posts

    def start_edit(self, post: TextPost) -> None:
        self.editing = post
        self.title = post.title
        self.content = post.content or ""

    def cancel_edit(self) -> None:
        self.editing = None
        self.title = ""
        self.content = ""

    def save(self) -> Optional[TextPost]:
        self.saving = True
        self.error = None
        try:
            post = self.service.save(
                self.title,
                self.content,
                post_id=self.editing.id if self.editing else None,
            )
        except (PostValidationError, BackendError, NotFoundError) as e:
            self.error = str(e)
            return None
        finally:
            self.saving = False

        self.load()
        if self.editing is None:
            self.title = ""
            self.content = ""
        else:
            self.editing = post
        return post

    def request_delete(self, post_id: str) -> ConfirmDialog:
        self.post_to_delete = post_id
        self.dialog = ConfirmDialog(
            on_confirm=self.confirm_delete,
            on_cancel=self.cancel_delete,
            message="Are you sure you want to delete this post?",
        )
        return self.dialog

    def cancel_delete(self) -> None:
        if self.is_deleting:
            return
        self.post_to_delete = None
        self.dialog = None

    def confirm_delete(self) -> bool:
        post_id = self.post_to_delete
        if post_id is None:
            return False

        self.is_deleting = True
        if self.dialog is not None:
            self.dialog.is_loading = True
        try:
            self.service.delete(post_id)
        except (BackendError, NotFoundError) as e:
            self.error = str(e)
            return False
        finally:
            self.is_deleting = False
            self.post_to_delete = None
            self.dialog = None

        if self.editing is not None and self.editing.id == post_id:
            self.cancel_edit()
        self.load()
        return True

    def copy_to_clipboard(self, post: TextPost) -> str:
        """Plain text of ``post``, handed to the clipboard writer if there is one."""
        text = html_to_text(post.content)
        if self.clipboard is not None:
            self.clipboard(text)
        return text
