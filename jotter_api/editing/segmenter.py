from __future__ import annotations

from jotter_api.domain.entities import NoteItem, TaskNote, TextNote

TODO_KEYWORD = "todo:"

# Landing slot for the cursor when a task ends up last on the page.
TRAILING_BLANK = " "


def split_on_keyword(items: list[NoteItem], index: int, pre_text: str, post_text: str) -> TaskNote:
    """
    Turn the item at ``index`` into text / task / text around a detected keyword.

    Mutates ``items`` in place and returns the inserted task.
    """
    if not 0 <= index < len(items):
        raise IndexError(index)

    if not pre_text:
        # Nothing before the keyword: the source item goes away entirely.
        del items[index]
        insert_at = index
    else:
        items[index].text = pre_text
        insert_at = index + 1

    task = TaskNote()
    items.insert(insert_at, task)

    after = insert_at + 1
    if post_text:
        if after < len(items) and not isinstance(items[after], TaskNote):
            neighbour = items[after]
            neighbour.text = post_text + neighbour.text
        else:
            items.insert(after, TextNote(post_text))
    elif after == len(items):
        items.insert(after, TextNote(TRAILING_BLANK))

    return task


def remove_task(items: list[NoteItem], index: int) -> TaskNote:
    """
    Remove the task at ``index``, re-joining the text notes it separated.

    Only merges when both neighbours are plain text.
    """
    task = items[index]
    if not isinstance(task, TaskNote):
        raise TypeError(f"item {index} is not a task")

    del items[index]

    if (
        index > 0
        and not isinstance(items[index - 1], TaskNote)
        and index < len(items)
        and not isinstance(items[index], TaskNote)
    ):
        items[index - 1].text += items[index].text
        del items[index]

    return task
