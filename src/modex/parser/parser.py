"""Model Recursive-Descent Parser.

Converts a flat list of ``Token`` objects into a ``PackageDecl`` AST.

The parser skips COMMENT and NEWLINE tokens transparently, so the grammar
rules are stated in terms of meaningful tokens only::

    model_file    ::= annotation* 'package' qualified_name classifier* EOF
    annotation    ::= '@' IDENT [ '(' detail { ',' detail } ')' ]
    detail        ::= IDENT '=' STRING
    classifier    ::= annotation* ( class_decl | enum_decl | type_decl )
    class_decl    ::= ['abstract'] ( 'class' | 'interface' ) IDENT
                      [ 'extends' type_ref { ',' type_ref } ] '{' member* '}'
    member        ::= annotation* ( attribute | reference ) [';']
    attribute     ::= modifier* type_ref [multiplicity] IDENT
    reference     ::= modifier* ( 'contains' | 'container' | 'refers' )
                      [ 'resolving' | 'local' ] type_ref [multiplicity] IDENT
                      [ 'opposite' IDENT ]
    multiplicity  ::= '[' [ '?' | '*' | '+' | NUMBER [ '..' ( NUMBER | '*' ) ] ] ']'
    enum_decl     ::= 'enum' IDENT '{' { enum_literal [','] } '}'
    enum_literal  ::= IDENT [ 'as' STRING ] [ '=' NUMBER ]
    type_decl     ::= 'type' IDENT 'wraps' qualified_name

Error recovery
--------------
When an unexpected token is encountered the parser records a ``ParseError``
and either skips the token or pretends the missing one was present.  A
single run can therefore surface multiple independent errors, which are
raised together as a ``ParseErrorCollection``.
"""
from __future__ import annotations

from modex.ast.nodes import (
    Annotation,
    AttributeDecl,
    ClassDecl,
    ClassifierDecl,
    DataTypeDecl,
    EnumDecl,
    EnumLiteralDecl,
    MemberDecl,
    Modifier,
    Multiplicity,
    PackageDecl,
    ReferenceDecl,
    ReferenceKind,
    Span,
    TypeRef,
)
from modex.grammar.tokens import MODIFIERS, Token, TokenType
from modex.lexer.lexer import tokenize
from modex.parser.errors import ParseError, ParseErrorCollection, RecoveryStrategy

_MODIFIER_MAP: dict[TokenType, Modifier] = {
    TokenType.UNIQUE: Modifier.UNIQUE,
    TokenType.READONLY: Modifier.READONLY,
    TokenType.TRANSIENT: Modifier.TRANSIENT,
    TokenType.VOLATILE: Modifier.VOLATILE,
    TokenType.ID: Modifier.ID,
}
_REFERENCE_MAP: dict[TokenType, ReferenceKind] = {
    TokenType.CONTAINS: ReferenceKind.CONTAINS,
    TokenType.CONTAINER: ReferenceKind.CONTAINER,
    TokenType.REFERS: ReferenceKind.REFERS,
}
_CLASSIFIER_START = (TokenType.ABSTRACT, TokenType.CLASS, TokenType.INTERFACE, TokenType.ENUM, TokenType.TYPE)


class Parser:
    """Recursive descent parser that produces a ``PackageDecl`` from tokens.

    Parameters
    ----------
    tokens:
        The flat token list produced by the lexer.  Must include the
        terminal ``EOF`` token.
    """

    def __init__(self, tokens: list[Token]) -> None:
        # The grammar ignores comments and line breaks.
        self._tokens: list[Token] = [
            t for t in tokens if t.type not in (TokenType.COMMENT, TokenType.NEWLINE)
        ]
        self._pos: int = 0
        self._errors: ParseErrorCollection = ParseErrorCollection()

    # ------------------------------------------------------------------
    # Navigation helpers
    # ------------------------------------------------------------------

    def _current(self) -> Token:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return self._tokens[-1]  # EOF

    def _peek(self, offset: int = 1) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]

    def _advance(self) -> Token:
        """Consume and return the current token."""
        tok = self._current()
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Token | None:
        """Consume and return the current token if it matches; else None."""
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str | None = None) -> Token:
        """Consume the current token if it matches, else record an error.

        On mismatch a synthetic token with an empty value is returned so
        callers can keep going without special-casing ``None``.
        """
        tok = self._current()
        if tok.type == token_type:
            return self._advance()
        msg = message or f"Expected {token_type.name}"
        self._record_error(msg, (token_type,), RecoveryStrategy.INSERT_MISSING)
        return Token(
            type=token_type,
            value="",
            line=tok.line,
            col=tok.col,
            offset=tok.offset,
        )

    def _span_from(self, tok: Token) -> Span:
        return Span(
            start=tok.offset,
            end=tok.offset + len(tok.value),
            line=tok.line,
            col=tok.col,
        )

    def _span_between(self, start_tok: Token, end_tok: Token) -> Span:
        return Span(
            start=start_tok.offset,
            end=end_tok.offset + len(end_tok.value),
            line=start_tok.line,
            col=start_tok.col,
        )

    def _record_error(
        self,
        message: str,
        expected: tuple[TokenType, ...],
        recovery: RecoveryStrategy,
    ) -> None:
        tok = self._current()
        self._errors.add(
            ParseError(
                message=message,
                span=self._span_from(tok),
                expected=expected,
                found=tok,
                recovery=recovery,
            )
        )

    def _skip_unexpected(self, context: str, expected: tuple[TokenType, ...]) -> None:
        """Record an unexpected token and consume it unless it closes a block."""
        tok = self._current()
        self._record_error(
            f"Unexpected token {tok.value!r} in {context}",
            expected,
            RecoveryStrategy.SKIP_TOKEN,
        )
        if not self._check(TokenType.RBRACE, TokenType.EOF):
            self._advance()

    # ------------------------------------------------------------------
    # Top-level parse
    # ------------------------------------------------------------------

    def parse(self) -> PackageDecl:
        """Parse the token stream and return the root ``PackageDecl``.

        Raises
        ------
        ParseErrorCollection
            If any errors were recorded during parsing.
        """
        first_tok = self._current()
        annotations = self._parse_annotations()
        self._expect(TokenType.PACKAGE, "Expected 'package' declaration")
        name, _ = self._parse_qualified_name("Expected package name after 'package'")

        classifiers: list[ClassifierDecl] = []
        while not self._check(TokenType.EOF):
            classifier_annotations = self._parse_annotations()
            if self._check(TokenType.ABSTRACT, TokenType.CLASS, TokenType.INTERFACE):
                classifiers.append(self._parse_class(classifier_annotations))
            elif self._check(TokenType.ENUM):
                classifiers.append(self._parse_enum(classifier_annotations))
            elif self._check(TokenType.TYPE):
                classifiers.append(self._parse_data_type(classifier_annotations))
            elif self._check(TokenType.RBRACE):
                self._record_error(
                    "Unbalanced '}' at package level",
                    _CLASSIFIER_START,
                    RecoveryStrategy.SKIP_TOKEN,
                )
                self._advance()
            else:
                self._skip_unexpected("package body", _CLASSIFIER_START)

        end_tok = self._expect(TokenType.EOF)
        if self._errors.has_errors:
            raise self._errors
        return PackageDecl(
            name=name,
            annotations=tuple(annotations),
            classifiers=tuple(classifiers),
            span=self._span_between(first_tok, end_tok),
        )

    def _parse_qualified_name(self, message: str) -> tuple[str, Token]:
        """Parse: ``IDENT { '.' IDENT }``  → (dotted name, last token)."""
        first = self._expect(TokenType.IDENT, message)
        parts = [first.value]
        last = first
        while self._check(TokenType.DOT) and self._peek().type == TokenType.IDENT:
            self._advance()  # '.'
            last = self._advance()
            parts.append(last.value)
        return ".".join(parts), last

    def _parse_type_ref(self) -> TypeRef:
        start_tok = self._current()
        name, last = self._parse_qualified_name("Expected type name")
        return TypeRef(name=name, span=self._span_between(start_tok, last))

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def _parse_annotations(self) -> list[Annotation]:
        annotations: list[Annotation] = []
        while self._check(TokenType.AT):
            annotations.append(self._parse_annotation())
        return annotations

    def _parse_annotation(self) -> Annotation:
        """Parse: ``'@' IDENT [ '(' IDENT '=' STRING { ',' ... } ')' ]``"""
        start_tok = self._advance()  # consume '@'
        name_tok = self._expect(TokenType.IDENT, "Expected annotation name after '@'")
        end_tok = name_tok
        details: list[tuple[str, str]] = []
        if self._match(TokenType.LPAREN):
            while not self._check(TokenType.RPAREN, TokenType.EOF):
                key_tok = self._current()
                if key_tok.type == TokenType.IDENT or key_tok.is_keyword:
                    self._advance()
                else:
                    key_tok = self._expect(TokenType.IDENT, "Expected annotation detail key")
                self._expect(TokenType.ASSIGN, "Expected '=' after annotation detail key")
                value_tok = self._expect(TokenType.STRING, "Expected string value for annotation detail")
                details.append((key_tok.value, value_tok.value))
                if not self._match(TokenType.COMMA):
                    break
            end_tok = self._expect(TokenType.RPAREN, "Expected ')' to close annotation details")
        return Annotation(
            name=name_tok.value,
            details=tuple(details),
            span=self._span_between(start_tok, end_tok),
        )

    # ------------------------------------------------------------------
    # Class parser
    # ------------------------------------------------------------------

    def _parse_class(self, annotations: list[Annotation]) -> ClassDecl:
        """Parse a ``[abstract] (class | interface) IDENT ... '{' ... '}'`` block."""
        start_tok = self._current()
        abstract = self._match(TokenType.ABSTRACT) is not None
        interface = False
        if self._match(TokenType.INTERFACE):
            interface = True
        else:
            self._expect(TokenType.CLASS, "Expected 'class' or 'interface'")
        name_tok = self._expect(TokenType.IDENT, "Expected class name")

        super_types: list[TypeRef] = []
        if self._match(TokenType.EXTENDS):
            super_types.append(self._parse_type_ref())
            while self._match(TokenType.COMMA):
                super_types.append(self._parse_type_ref())

        self._expect(TokenType.LBRACE, "Expected '{' after class header")
        members: list[MemberDecl] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            member = self._parse_member()
            if member is not None:
                members.append(member)
            self._match(TokenType.SEMICOLON)

        end_tok = self._expect(TokenType.RBRACE, "Expected '}' to close class body")
        return ClassDecl(
            name=name_tok.value,
            abstract=abstract,
            interface=interface,
            super_types=tuple(super_types),
            members=tuple(members),
            annotations=tuple(annotations),
            span=self._span_between(start_tok, end_tok),
        )

    def _parse_member(self) -> MemberDecl | None:
        start_tok = self._current()
        annotations = self._parse_annotations()
        modifiers: list[Modifier] = []
        while self._current().type in MODIFIERS:
            modifiers.append(_MODIFIER_MAP[self._advance().type])

        if self._current().type in _REFERENCE_MAP:
            return self._parse_reference(start_tok, annotations, modifiers)
        if self._check(TokenType.IDENT):
            return self._parse_attribute(start_tok, annotations, modifiers)
        self._skip_unexpected(
            "class body",
            (TokenType.IDENT, TokenType.CONTAINS, TokenType.REFERS, TokenType.RBRACE),
        )
        return None

    def _parse_attribute(
        self,
        start_tok: Token,
        annotations: list[Annotation],
        modifiers: list[Modifier],
    ) -> AttributeDecl:
        """Parse: ``type_ref [multiplicity] IDENT``"""
        type_ref = self._parse_type_ref()
        multiplicity = self._parse_multiplicity() if self._check(TokenType.LBRACKET) else None
        name_tok = self._expect(TokenType.IDENT, "Expected attribute name")
        return AttributeDecl(
            name=name_tok.value,
            type_ref=type_ref,
            multiplicity=multiplicity,
            modifiers=tuple(modifiers),
            annotations=tuple(annotations),
            span=self._span_between(start_tok, name_tok),
        )

    def _parse_reference(
        self,
        start_tok: Token,
        annotations: list[Annotation],
        modifiers: list[Modifier],
    ) -> ReferenceDecl:
        """Parse: ``(contains|container|refers) [resolving|local] type_ref [mult] IDENT [opposite IDENT]``"""
        kind = _REFERENCE_MAP[self._advance().type]
        resolving: bool | None = None
        if self._match(TokenType.RESOLVING):
            resolving = True
        elif self._match(TokenType.LOCAL):
            resolving = False
        type_ref = self._parse_type_ref()
        multiplicity = self._parse_multiplicity() if self._check(TokenType.LBRACKET) else None
        name_tok = self._expect(TokenType.IDENT, "Expected reference name")
        end_tok = name_tok
        opposite: str | None = None
        if self._match(TokenType.OPPOSITE):
            end_tok = self._expect(TokenType.IDENT, "Expected feature name after 'opposite'")
            opposite = end_tok.value
        return ReferenceDecl(
            name=name_tok.value,
            kind=kind,
            type_ref=type_ref,
            multiplicity=multiplicity,
            opposite=opposite,
            resolving=resolving,
            modifiers=tuple(modifiers),
            annotations=tuple(annotations),
            span=self._span_between(start_tok, end_tok),
        )

    def _parse_multiplicity(self) -> Multiplicity:
        """Parse: ``'[' [ '?' | '*' | '+' | NUMBER [ '..' (NUMBER | '*') ] ] ']'``"""
        start_tok = self._advance()  # consume '['
        lower, upper = 0, -1
        if self._match(TokenType.QUESTION):
            lower, upper = 0, 1
        elif self._match(TokenType.STAR):
            lower, upper = 0, -1
        elif self._match(TokenType.PLUS):
            lower, upper = 1, -1
        elif self._check(TokenType.NUMBER):
            lower = self._parse_bound(self._advance())
            upper = lower
            if self._match(TokenType.DOTDOT):
                if self._match(TokenType.STAR):
                    upper = -1
                else:
                    upper = self._parse_bound(
                        self._expect(TokenType.NUMBER, "Expected upper bound or '*' after '..'")
                    )
        elif not self._check(TokenType.RBRACKET):
            self._record_error(
                "Expected multiplicity ('?', '*', '+', or bounds)",
                (TokenType.NUMBER, TokenType.QUESTION, TokenType.STAR, TokenType.PLUS),
                RecoveryStrategy.SKIP_TOKEN,
            )
            self._advance()
        end_tok = self._expect(TokenType.RBRACKET, "Expected ']' to close multiplicity")
        return Multiplicity(lower=lower, upper=upper, span=self._span_between(start_tok, end_tok))

    def _parse_bound(self, tok: Token) -> int:
        try:
            value = int(tok.value)
        except ValueError:
            return 0
        if value < 0:
            self._errors.add(
                ParseError(
                    message="Multiplicity bounds must not be negative",
                    span=self._span_from(tok),
                    expected=(TokenType.NUMBER,),
                    found=tok,
                    recovery=RecoveryStrategy.INSERT_MISSING,
                )
            )
            return 0
        return value

    # ------------------------------------------------------------------
    # Enum and data type parsers
    # ------------------------------------------------------------------

    def _parse_enum(self, annotations: list[Annotation]) -> EnumDecl:
        """Parse: ``enum IDENT '{' { IDENT [as STRING] [= NUMBER] [','] } '}'``"""
        start_tok = self._advance()  # consume 'enum'
        name_tok = self._expect(TokenType.IDENT, "Expected enum name")
        self._expect(TokenType.LBRACE, "Expected '{' after enum name")

        literals: list[EnumLiteralDecl] = []
        while not self._check(TokenType.RBRACE, TokenType.EOF):
            if not self._check(TokenType.IDENT):
                self._skip_unexpected("enum body", (TokenType.IDENT, TokenType.RBRACE))
                continue
            lit_tok = self._advance()
            end_tok = lit_tok
            literal: str | None = None
            value: int | None = None
            if self._match(TokenType.AS):
                end_tok = self._expect(TokenType.STRING, "Expected string after 'as'")
                literal = end_tok.value
            if self._match(TokenType.ASSIGN):
                end_tok = self._expect(TokenType.NUMBER, "Expected integer value after '='")
                try:
                    value = int(end_tok.value)
                except ValueError:
                    value = None
            literals.append(
                EnumLiteralDecl(
                    name=lit_tok.value,
                    literal=literal,
                    value=value,
                    span=self._span_between(lit_tok, end_tok),
                )
            )
            self._match(TokenType.COMMA)

        end_tok = self._expect(TokenType.RBRACE, "Expected '}' to close enum body")
        return EnumDecl(
            name=name_tok.value,
            literals=tuple(literals),
            annotations=tuple(annotations),
            span=self._span_between(start_tok, end_tok),
        )

    def _parse_data_type(self, annotations: list[Annotation]) -> DataTypeDecl:
        """Parse: ``type IDENT wraps qualified_name``"""
        start_tok = self._advance()  # consume 'type'
        name_tok = self._expect(TokenType.IDENT, "Expected data type name")
        self._expect(TokenType.WRAPS, "Expected 'wraps' after data type name")
        instance_type, end_tok = self._parse_qualified_name("Expected wrapped type name after 'wraps'")
        return DataTypeDecl(
            name=name_tok.value,
            instance_type=instance_type,
            annotations=tuple(annotations),
            span=self._span_between(start_tok, end_tok),
        )


# ---------------------------------------------------------------------------
# Module-level convenience function
# ---------------------------------------------------------------------------


def parse(source: str) -> PackageDecl:
    """Parse a model description and return the root ``PackageDecl``.

    Parameters
    ----------
    source:
        Complete model description text.

    Returns
    -------
    PackageDecl
        The parsed package.

    Raises
    ------
    LexError
        If the source contains invalid characters or unterminated literals.
    ParseErrorCollection
        If the source contains syntactic errors.

    Example
    -------
    ::

        from modex.parser import parse
        package = parse('''
            package com.example.Example
            class Model { contains Greeting[] greetings }
            class Greeting { String name }
        ''')
    """
    tokens = tokenize(source)
    return Parser(tokens).parse()
