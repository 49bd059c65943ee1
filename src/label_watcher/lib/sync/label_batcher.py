"""
label_batcher.py
- Accumulates label tokens into size-bounded batches for the controller's label endpoints.
- A batch is flushed once its buffer grows past the limit; the remainder is flushed on close.
"""

from label_watcher.core.constants import LABEL_BATCH_LIMIT, LABEL_SEPARATOR


class LabelBatcher:
    """
    Batch builder for label mutation requests.

    Each token is appended followed by the separator. When the buffer length
    exceeds `limit`, the buffer is handed to `flush` and reset. Exceptions raised
    by `flush` propagate to the caller untouched.

    Usage:
        with LabelBatcher(client.remove_labels_batch) as batcher:
            for label in labels:
                batcher.add(label)
    """

    def __init__(self, flush, limit=LABEL_BATCH_LIMIT, separator=LABEL_SEPARATOR):
        self._flush = flush
        self.limit = limit
        self.separator = separator
        self._buffer = []
        self._length = 0
        self.batches_sent = 0

    def add(self, token):
        self._buffer.append(token + self.separator)
        self._length += len(token) + len(self.separator)
        if self._length > self.limit:
            self.flush()

    def extend(self, tokens):
        for token in tokens:
            self.add(token)

    def flush(self):
        if not self._buffer:
            return
        batch = "".join(self._buffer)
        self._buffer = []
        self._length = 0
        self._flush(batch)
        self.batches_sent += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        # Only flush the remainder when every earlier batch went through.
        if exc_type is None:
            self.flush()
        return False


def send_in_batches(tokens, flush, limit=LABEL_BATCH_LIMIT, separator=LABEL_SEPARATOR):
    """
    Send all tokens through `flush` in order, batched by `limit` characters.

    Returns:
        int: Number of batches sent.
    """
    with LabelBatcher(flush, limit=limit, separator=separator) as batcher:
        batcher.extend(tokens)
    return batcher.batches_sent
