from stacksh.editor.document import EditorDocument, Mode
from stacksh.editor.modal import ModalEditor

__all__ = ["EditorDocument", "ModalEditor", "Mode"]
