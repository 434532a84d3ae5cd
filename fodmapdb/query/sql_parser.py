"""
SQL Parser for fodmapdb

Classifies a statement string into one of the shapes in
``fodmapdb.query.statements``. This is not a SQL grammar: a small
tokenizer feeds a recursive-descent parser that only knows the handful
of statement shapes the diary application issues.

Supported shapes:
- INSERT [OR <modifier>] INTO t (c1, c2, ...) VALUES (...)
- INSERT [OR <modifier>] INTO t VALUES (...)
- DELETE FROM t
- DELETE FROM t WHERE col = ?
- DELETE FROM t WHERE col = 'literal'
- UPDATE t SET c1 = ?, c2 = ?, ... WHERE id = ?
- SELECT ... FROM t [WHERE col = ? | WHERE col BETWEEN ? AND ?]
  [GROUP BY date] [ORDER BY col [ASC|DESC], ...] [LIMIT n [OFFSET m]]
- CREATE TABLE [IF NOT EXISTS] t ...  (schema scripts)

Everything else comes back as ``Unsupported``. Parsing never raises.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fodmapdb.query.statements import (
    Aggregate,
    Between,
    Count,
    CreateTable,
    DeleteAll,
    DeleteWhereEquals,
    EqualsParam,
    Insert,
    OrderKey,
    ParsedQuery,
    Predicate,
    Select,
    Sum,
    Unsupported,
    UpdateById,
)

# Token kinds
WORD = 'word'
NUMBER = 'number'
STRING = 'string'
PARAM = 'param'
SYMBOL = 'symbol'
EOF = 'eof'

DIGITS = frozenset('0123456789')
TWO_CHAR_SYMBOLS = ('<=', '>=', '!=', '<>', '||', '==')

# Keywords that open a top-level SELECT clause
SELECT_CLAUSES = ('WHERE', 'GROUP', 'HAVING', 'ORDER', 'LIMIT', 'OFFSET')


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    start: int
    end: int
    quoted: bool = False

    def is_word(self, *keywords: str) -> bool:
        """True if this is an unquoted word matching one of ``keywords``."""
        if self.kind != WORD or self.quoted:
            return False
        return self.value.upper() in keywords

    def is_symbol(self, symbol: str) -> bool:
        return self.kind == SYMBOL and self.value == symbol


class Tokenizer:
    """
    Single-pass tokenizer.

    Never raises: an unterminated string runs to the end of the text and
    an unknown character becomes a one-character symbol.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            self._skip()
            if self.pos >= len(self.text):
                tokens.append(Token(EOF, None, self.pos, self.pos))
                return tokens
            tokens.append(self._next())

    def _peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        return self.text[pos] if pos < len(self.text) else ''

    def _skip(self) -> None:
        """Skip whitespace and comments (-- and /* */)."""
        while self.pos < len(self.text):
            if self.text[self.pos].isspace():
                self.pos += 1
            elif self.text.startswith('--', self.pos):
                newline = self.text.find('\n', self.pos)
                self.pos = len(self.text) if newline == -1 else newline + 1
            elif self.text.startswith('/*', self.pos):
                close = self.text.find('*/', self.pos + 2)
                self.pos = len(self.text) if close == -1 else close + 2
            else:
                break

    def _next(self) -> Token:
        start = self.pos
        ch = self._peek()

        if ch == "'":
            return self._string(start)
        if ch in ('"', '`', '['):
            return self._quoted_word(start, ']' if ch == '[' else ch)
        if ch in DIGITS or (ch == '.' and self._peek(1) in DIGITS):
            return self._number(start)
        if ch.isalpha() or ch == '_':
            while self._peek().isalnum() or self._peek() in ('_', '$'):
                self.pos += 1
            return Token(WORD, self.text[start:self.pos], start, self.pos)
        if ch == '?':
            self.pos += 1
            while self._peek() in DIGITS:
                self.pos += 1
            return Token(PARAM, '?', start, self.pos)

        two = self.text[self.pos:self.pos + 2]
        if two in TWO_CHAR_SYMBOLS:
            self.pos += 2
            return Token(SYMBOL, two, start, self.pos)

        self.pos += 1
        return Token(SYMBOL, ch, start, self.pos)

    def _string(self, start: int) -> Token:
        self.pos += 1  # opening '
        chars = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            self.pos += 1
            if ch == "'":
                if self._peek() == "'":  # escaped ''
                    chars.append("'")
                    self.pos += 1
                    continue
                break
            chars.append(ch)
        return Token(STRING, ''.join(chars), start, self.pos)

    def _quoted_word(self, start: int, closing: str) -> Token:
        self.pos += 1
        close = self.text.find(closing, self.pos)
        if close == -1:
            close = len(self.text)
        value = self.text[self.pos:close]
        self.pos = min(close + 1, len(self.text))
        return Token(WORD, value, start, self.pos, quoted=True)

    def _number(self, start: int) -> Token:
        while self._peek() in DIGITS:
            self.pos += 1
        is_float = False
        if self._peek() == '.':
            is_float = True
            self.pos += 1
            while self._peek() in DIGITS:
                self.pos += 1
        if self._peek() in ('e', 'E') and (
            self._peek(1) in DIGITS or (self._peek(1) in ('+', '-') and self._peek(2) in DIGITS)
        ):
            is_float = True
            self.pos += 2
            while self._peek() in DIGITS:
                self.pos += 1
        raw = self.text[start:self.pos]
        value = float(raw) if is_float else int(raw)
        return Token(NUMBER, value, start, self.pos)


class _ParseMiss(Exception):
    """The statement left the supported shapes. Never escapes SQLParser."""

    def __init__(self, reason: str, table: Optional[str] = None):
        super().__init__(reason)
        self.table = table


class _Cursor:
    """Position over a token list ending in EOF."""

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.index = 0

    def peek(self, offset: int = 0) -> Token:
        index = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.peek()
        if token.kind != EOF:
            self.index += 1
        return token

    def accept_word(self, *keywords: str) -> bool:
        if self.peek().is_word(*keywords):
            self.advance()
            return True
        return False

    def accept_symbol(self, symbol: str) -> bool:
        if self.peek().is_symbol(symbol):
            self.advance()
            return True
        return False

    def expect_word(self, keyword: str) -> None:
        if not self.accept_word(keyword):
            raise _ParseMiss(f"expected {keyword}")

    def expect_symbol(self, symbol: str) -> None:
        if not self.accept_symbol(symbol):
            raise _ParseMiss(f"expected '{symbol}'")

    def expect_name(self) -> str:
        token = self.peek()
        if token.kind != WORD:
            raise _ParseMiss("expected a name")
        self.advance()
        return token.value

    def expect_end(self) -> None:
        self.accept_symbol(';')
        if self.peek().kind != EOF:
            raise _ParseMiss("unexpected trailing tokens")

    def rest(self) -> List[Token]:
        return self.tokens[self.index:-1]


class SQLParser:
    """
    Statement classifier for the emulated database.

    Example:
        parser = SQLParser()
        parser.parse("SELECT * FROM meals WHERE date BETWEEN ? AND ?")
        # Select(table='meals', predicate=Between(column='date'), has_where=True)

        parser.parse("SELECT * FROM x WHERE a = ? AND b = ?")
        # Select(table='x', predicate=None, has_where=True)
    """

    def parse(self, sql: str) -> ParsedQuery:
        """
        Parse one statement.

        Args:
            sql: Statement text; whitespace and newlines are insignificant

        Returns:
            One of the ParsedQuery shapes, ``Unsupported`` when the text
            doesn't match any of them
        """
        sql = sql or ''
        tokens = Tokenizer(sql).tokenize()
        return self._parse_tokens(tokens, sql.strip())

    def parse_script(self, sql: str) -> List[ParsedQuery]:
        """
        Parse a ``;``-separated script, one result per statement.

        Example:
            parser.parse_script('''
                CREATE TABLE IF NOT EXISTS meals (id INTEGER PRIMARY KEY, name TEXT);
                CREATE TABLE IF NOT EXISTS symptoms (id INTEGER PRIMARY KEY);
            ''')
            # [CreateTable(table='meals'), CreateTable(table='symptoms')]
        """
        sql = sql or ''
        tokens = Tokenizer(sql).tokenize()
        eof = tokens[-1]

        statements: List[ParsedQuery] = []
        current: List[Token] = []
        depth = 0
        for token in tokens[:-1]:
            if token.is_symbol('('):
                depth += 1
            elif token.is_symbol(')'):
                depth = max(depth - 1, 0)
            if token.is_symbol(';') and depth == 0:
                if current:
                    statements.append(self._parse_part(current, eof, sql))
                current = []
                continue
            current.append(token)
        if current:
            statements.append(self._parse_part(current, eof, sql))
        return statements

    def _parse_part(self, part: List[Token], eof: Token, sql: str) -> ParsedQuery:
        text = sql[part[0].start:part[-1].end]
        return self._parse_tokens(part + [eof], text)

    def _parse_tokens(self, tokens: List[Token], text: str) -> ParsedQuery:
        cursor = _Cursor(tokens)
        head = cursor.peek()

        try:
            if head.is_word('SELECT'):
                return self._parse_select(cursor)
            elif head.is_word('INSERT', 'REPLACE'):
                return self._parse_insert(cursor)
            elif head.is_word('UPDATE'):
                return self._parse_update(cursor)
            elif head.is_word('DELETE'):
                return self._parse_delete(cursor)
            elif head.is_word('CREATE'):
                return self._parse_create_table(cursor)
        except _ParseMiss as miss:
            return Unsupported(text=text, reason=str(miss), table=miss.table)

        if head.kind == EOF:
            return Unsupported(text=text, reason="empty statement")
        return Unsupported(text=text, reason=f"unsupported statement: {head.value}")

    # ========================================
    # INSERT
    # ========================================

    def _parse_insert(self, cursor: _Cursor) -> Insert:
        """
        INSERT [OR <modifier>] INTO t (c1, c2, ...) ...
        INSERT [OR <modifier>] INTO t VALUES ...

        Only the table and the column list matter; the VALUES list is
        not read (values are bound positionally from the parameters).
        """
        if not cursor.accept_word('REPLACE'):
            cursor.expect_word('INSERT')
            if cursor.accept_word('OR'):
                cursor.expect_name()
        cursor.expect_word('INTO')
        table = cursor.expect_name()

        if cursor.accept_symbol('('):
            columns = [cursor.expect_name()]
            while cursor.accept_symbol(','):
                columns.append(cursor.expect_name())
            if not cursor.accept_symbol(')'):
                raise _ParseMiss("malformed column list", table)
            return Insert(table=table, columns=tuple(columns))

        if cursor.accept_word('VALUES'):
            return Insert(table=table, columns=())

        raise _ParseMiss("expected a column list or VALUES", table)

    # ========================================
    # DELETE
    # ========================================

    def _parse_delete(self, cursor: _Cursor) -> ParsedQuery:
        """
        DELETE FROM t
        DELETE FROM t WHERE col = ?
        DELETE FROM t WHERE col = 'literal'
        """
        cursor.expect_word('DELETE')
        cursor.expect_word('FROM')
        table = cursor.expect_name()

        if not cursor.accept_word('WHERE'):
            if any(token.is_word('WHERE') for token in cursor.rest()):
                raise _ParseMiss("unsupported DELETE shape", table)
            return DeleteAll(table=table)

        try:
            column = cursor.expect_name()
            cursor.expect_symbol('=')
            value = cursor.advance()
            cursor.expect_end()
        except _ParseMiss as miss:
            raise _ParseMiss(f"unsupported DELETE WHERE clause: {miss}", table) from miss

        if value.kind == PARAM:
            return DeleteWhereEquals(table=table, column=column, source='param')
        if value.kind == STRING and value.value:
            return DeleteWhereEquals(
                table=table, column=column, source='literal', literal=value.value
            )
        raise _ParseMiss("unsupported DELETE WHERE value", table)

    # ========================================
    # UPDATE
    # ========================================

    def _parse_update(self, cursor: _Cursor) -> UpdateById:
        """
        UPDATE t SET c1 = <expr>, c2 = <expr>, ... WHERE id = ?

        The SET expressions are skipped; the executor binds the i-th SET
        column to the i-th parameter.
        """
        cursor.expect_word('UPDATE')
        table = cursor.expect_name()
        try:
            cursor.expect_word('SET')
            columns = []
            while True:
                columns.append(cursor.expect_name())
                cursor.expect_symbol('=')
                if self._skip_expression(cursor) == ',':
                    cursor.advance()
                    continue
                break

            cursor.expect_word('WHERE')
            if not cursor.peek().is_word('ID'):
                raise _ParseMiss("only WHERE id = ? is supported")
            cursor.advance()
            cursor.expect_symbol('=')
            if cursor.advance().kind != PARAM:
                raise _ParseMiss("only WHERE id = ? is supported")
            cursor.expect_end()
        except _ParseMiss as miss:
            raise _ParseMiss(f"unsupported UPDATE: {miss}", table) from miss

        return UpdateById(table=table, set_columns=tuple(columns))

    def _skip_expression(self, cursor: _Cursor) -> str:
        """Skip one SET expression; return the top-level ',' or 'WHERE' that ends it."""
        depth = 0
        consumed = 0
        while True:
            token = cursor.peek()
            if token.kind == EOF:
                raise _ParseMiss("missing WHERE id = ?")
            if depth == 0 and consumed and token.is_symbol(','):
                return ','
            if depth == 0 and consumed and token.is_word('WHERE'):
                return 'WHERE'
            if token.is_symbol('('):
                depth += 1
            elif token.is_symbol(')'):
                depth -= 1
            cursor.advance()
            consumed += 1

    # ========================================
    # SELECT
    # ========================================

    def _parse_select(self, cursor: _Cursor) -> Select:
        """
        SELECT <list> FROM t [WHERE ...] [GROUP BY date] [ORDER BY ...] [LIMIT n [OFFSET m]]

        Joins, subqueries and anything after the table name that isn't
        one of the clauses above are ignored.
        """
        cursor.expect_word('SELECT')

        select_list: List[Token] = []
        depth = 0
        while cursor.peek().kind != EOF:
            token = cursor.peek()
            if depth == 0 and token.is_word('FROM'):
                break
            if token.is_symbol('('):
                depth += 1
            elif token.is_symbol(')'):
                depth -= 1
            select_list.append(cursor.advance())

        aggregate = self._detect_aggregate(select_list)

        if not cursor.accept_word('FROM'):
            return Select(table=None, aggregate=aggregate)

        table = None
        if cursor.peek().kind == WORD:
            table = cursor.advance().value

        clauses = self._split_clauses(cursor.rest())
        where = clauses.get('WHERE')
        limit, offset = self._parse_limit(clauses.get('LIMIT'), clauses.get('OFFSET'))

        return Select(
            table=table,
            predicate=self._classify_where(where) if where else None,
            aggregate=aggregate,
            group_by=self._parse_group_by(clauses.get('GROUP')),
            order_by=self._parse_order_by(clauses.get('ORDER')),
            limit=limit,
            offset=offset,
            has_where=where is not None,
        )

    def _split_clauses(self, tokens: List[Token]) -> Dict[str, List[Token]]:
        """Group top-level tokens under the clause keyword that precedes them."""
        clauses: Dict[str, List[Token]] = {}
        current: Optional[List[Token]] = None
        depth = 0

        for token in tokens:
            if depth == 0 and token.is_word(*SELECT_CLAUSES):
                keyword = token.value.upper()
                current = [] if keyword in clauses else clauses.setdefault(keyword, [])
                continue
            if token.is_symbol('('):
                depth += 1
            elif token.is_symbol(')'):
                depth -= 1
            if current is not None:
                current.append(token)

        for keyword in ('GROUP', 'ORDER'):
            body = clauses.get(keyword)
            if body is not None:
                clauses[keyword] = body[1:] if body and body[0].is_word('BY') else []
        return clauses

    def _detect_aggregate(self, tokens: List[Token]) -> Optional[Aggregate]:
        """COUNT(*) first, then SUM(col) optionally inside COALESCE(...)."""
        for i in range(len(tokens) - 3):
            if (tokens[i].is_word('COUNT') and tokens[i + 1].is_symbol('(')
                    and tokens[i + 2].is_symbol('*') and tokens[i + 3].is_symbol(')')):
                return Count()

        for i in range(len(tokens) - 3):
            if (tokens[i].is_word('SUM') and tokens[i + 1].is_symbol('(')
                    and tokens[i + 2].kind == WORD and tokens[i + 3].is_symbol(')')):
                coalesce = (i >= 2 and tokens[i - 2].is_word('COALESCE', 'IFNULL')
                            and tokens[i - 1].is_symbol('('))
                return Sum(column=tokens[i + 2].value, coalesce=coalesce)

        return None

    def _classify_where(self, tokens: List[Token]) -> Optional[Predicate]:
        """
        Exactly ``col = ?`` or ``col BETWEEN ? AND ?``; anything else
        (AND/OR chains, literals, other operators) is not a predicate.
        """
        if len(tokens) == 3:
            column, op, value = tokens
            if column.kind == WORD and op.is_symbol('=') and value.kind == PARAM:
                return EqualsParam(column=column.value)

        if len(tokens) == 5:
            column, between, low, conj, high = tokens
            if (column.kind == WORD and between.is_word('BETWEEN') and low.kind == PARAM
                    and conj.is_word('AND') and high.kind == PARAM):
                return Between(column=column.value)

        return None

    def _parse_group_by(self, tokens: Optional[List[Token]]) -> Optional[str]:
        """Only ``GROUP BY date`` is understood."""
        if tokens and len(tokens) == 1 and tokens[0].kind == WORD:
            if tokens[0].value.lower() == 'date':
                return 'date'
        return None

    def _parse_order_by(self, tokens: Optional[List[Token]]) -> Tuple[OrderKey, ...]:
        """``col [ASC|DESC], ...``; a malformed list is ignored entirely."""
        if not tokens:
            return ()

        keys = []
        cursor = _Cursor(tokens + [Token(EOF, None, tokens[-1].end, tokens[-1].end)])
        try:
            while True:
                column = cursor.expect_name()
                descending = False
                if cursor.accept_word('DESC'):
                    descending = True
                else:
                    cursor.accept_word('ASC')
                keys.append(OrderKey(column=column, descending=descending))
                if not cursor.accept_symbol(','):
                    break
            cursor.expect_end()
        except _ParseMiss:
            return ()
        return tuple(keys)

    def _parse_limit(
        self,
        limit_tokens: Optional[List[Token]],
        offset_tokens: Optional[List[Token]],
    ) -> Tuple[Optional[int], Optional[int]]:
        """``LIMIT n``, ``LIMIT n OFFSET m`` or ``LIMIT m, n``."""
        limit = offset = None

        if limit_tokens:
            numbers = [t for t in limit_tokens if t.kind == NUMBER and isinstance(t.value, int)]
            if len(limit_tokens) == 1 and len(numbers) == 1:
                limit = numbers[0].value
            elif len(limit_tokens) == 3 and len(numbers) == 2 and limit_tokens[1].is_symbol(','):
                offset, limit = numbers[0].value, numbers[1].value

        if offset_tokens and len(offset_tokens) == 1:
            token = offset_tokens[0]
            if token.kind == NUMBER and isinstance(token.value, int):
                offset = token.value

        return limit, offset

    # ========================================
    # CREATE TABLE
    # ========================================

    def _parse_create_table(self, cursor: _Cursor) -> CreateTable:
        """CREATE [TEMP] TABLE [IF NOT EXISTS] t ..."""
        cursor.expect_word('CREATE')
        cursor.accept_word('TEMP', 'TEMPORARY')
        cursor.expect_word('TABLE')
        if cursor.accept_word('IF'):
            cursor.expect_word('NOT')
            cursor.expect_word('EXISTS')
        return CreateTable(table=cursor.expect_name())
