from typing import Any, Dict, Optional, Set

from .errors import EdlRuntimeError


class Environment:
    """One lexical scope: name -> value bindings plus a link to the enclosing scope.

    Frames are shared by reference. A closure keeps the frame it was
    created in, so it sees every later assignment made to that frame.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}
        self.consts: Set[str] = set()

    def get(self, name: str) -> Optional[Any]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        return None

    def is_defined(self, name: str) -> bool:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return True
            env = env.parent
        return False

    def set(self, name: str, value: Any) -> None:
        """Bind `name` in this frame, shadowing any outer binding."""
        self.consts.discard(name)
        self.values[name] = value

    def declare_const(self, name: str, value: Any) -> None:
        self.values[name] = value
        self.consts.add(name)

    def assign(self, name: str, value: Any) -> bool:
        """Update the nearest frame that already binds `name`.

        Returns False when no frame in the chain has the name.
        """
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                if name in env.consts:
                    raise EdlRuntimeError('TypeError', f"cannot assign to constant '{name}'")
                env.values[name] = value
                return True
            env = env.parent
        return False

    def depth(self) -> int:
        count = 0
        env = self.parent
        while env is not None:
            count += 1
            env = env.parent
        return count
