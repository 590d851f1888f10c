# Overview: Operation names used by access rules.


class Operation:
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    ALL = "all"  # rule covers every operation


OPERATIONS = (Operation.SELECT, Operation.INSERT, Operation.UPDATE, Operation.DELETE)
