# mdshelf

mdshelf reads a directory of Markdown files as a structured book. A
`SUMMARY.md` outline lists the chapters of the book and their order.

## The SUMMARY.md outline

```markdown
# Summary

[Introduction](intro.md)

# Part One

- [Getting started](start.md)
    - [Installing](install.md)
- [Draft chapter]()

---

[Appendix](appendix.md)
```

- Links before the first list are **prefix** chapters. They have no numbers.
- List items are **numbered** chapters. They can be nested, and the numbers
  carry on across parts and separators (`1.`, `1.1.`, `2.`).
- A level-one heading after the title starts a new **part**.
- Links after the numbered lists are **suffix** chapters. A list that follows
  them is an error.
- A link with an empty target is a **draft** chapter. No file stands behind it.
- HTML comments are skipped. A `%20` in a link target becomes a space.

`mdshelf.summary.parse_summary` returns a `Summary` of `Link`, `Separator`
and `PartTitle` items, which live in `mdshelf.items`. A malformed outline
raises `SummaryParseError`, and its message gives the line and column.

## Using the library

```python
from pathlib import Path

from mdshelf.summary import parse_summary
from mdshelf.loader import load_book

summary = parse_summary(Path("src/SUMMARY.md").read_text(encoding="utf-8"))
book = load_book("src", create_missing=True)

for item in book:
    print(item)
```

`load_book` reads every chapter from disk and strips a leading UTF-8 BOM. With
`create_missing=True` it first writes a stub file, `# <name>`, for each linked
chapter that does not exist yet. A problem on disk or in the outline raises
`BookLoadError`.

Iterating over a `Book` walks its items depth first. `Book.for_each_mut`
applies a function to every item, children before their parent. A `Chapter`
prints as its section number followed by its name. `book_to_json` and
`book_from_json` in `mdshelf.book` convert a book to and from the JSON form
that preprocessors exchange.

### Configuration helpers

These functions take the configuration as a plain dictionary, such as a parsed
`book.toml`:

- `mdshelf.ordering.determine_preprocessors` lists the preprocessors to run.
  It starts with the default `links` and `index`, unless
  `build.use-default-preprocessors` is false, and adds each
  `[preprocessor.<name>]` table. The `before` and `after` lists set the order,
  and ties are broken by name. The function raises `ConfigError` when a
  `before` or `after` value is not a list of strings, or when the dependencies
  form a cycle. An external preprocessor runs its `command`, or
  `mdbook-<name>` when no command is given.
- `mdshelf.pipeline.determine_renderers` reads the `[output.*]` tables and
  falls back to `html`.
- `preprocessor_should_run` decides whether a `Preprocessor` applies to a
  renderer.
- `build_dir_for` gives the output directory for a renderer. That is
  `build.build-dir` (default `book`), with one subdirectory per renderer when
  there are several.

## Command line

Create a new book:

```console
$ mdshelf init mybook --title "My Book" --ignore git
```

This creates `mybook/book/` and writes `book.toml`, `src/SUMMARY.md` and
`src/chapter_1.md`. `--ignore git` also writes a `.gitignore`. The author is
taken from `git config user.name` when git has one. Without `--force`, the
command asks about a `.gitignore` and a title if the options do not answer
those questions.

Remove a built book and report what was removed:

```console
$ mdshelf clean mybook
Removed 12 files, 48.31KiB total
```

By default this removes the `build.build-dir` named in `book.toml`, or `book`
if none is set. Pass `--dest-dir` to remove a different directory.

## A do-nothing preprocessor

`mdshelf-nop` is a preprocessor that returns the book unchanged. It reads the
`[context, book]` JSON pair from standard input and writes the book to
standard output. It prints a warning when the context's `mdbook_version` is
not compatible with 0.4.40.

```console
$ mdshelf-nop < input.json
$ mdshelf-nop supports html; echo $?
0
```

For the renderer named `not-supported`, the `supports` check exits with 1. If
`preprocessor.nop-preprocessor` has a `blow-up` key, the run fails.

## What mdshelf does not do

mdshelf has no build step. It renders no HTML or other output, and it has no
`build`, `serve`, `watch` or `test` command. The renderer and preprocessor
helpers only decide *which* steps would run, *in what order* and *where* their
output would go. Apart from the do-nothing preprocessor, nothing runs those
steps. `mdshelf init` writes no theme files.