# migsource

`migsource` finds versioned migration files, puts them in order and hands
out their bodies. A migration tool asks a source driver for the first
version, walks forward and backward through the versions, and reads the up
or down script for each one.

## Migration file names

Files are recognised by name:

```
<version>_<identifier>.up.<ext>
<version>_<identifier>.down.<ext>
```

for example `1_create_users.up.sql` and `1_create_users.down.sql`.

```python
from migsource.migration import Direction, Migrations, parse

m = parse("20170412214116_date_foobar.up.sql")
m.version      # 20170412214116
m.identifier   # "date_foobar"
m.direction    # Direction.UP
m.raw          # "20170412214116_date_foobar.up.sql"
```

`parse` raises `ParseError` (a `ValueError`) for names such as
`foobar.up.sql`, `1.up.sql`, `1_foobar.sql` or `-1_foobar.up.sql`, and for
versions that do not fit in 64 bits.

`Migrations` indexes parsed migrations by version. `append(m)` returns
`False` for `None` or when that version already has a migration in that
direction. `first()`, `prev(version)`, `next(version)`, `up(version)` and
`down(version)` return `None` when there is nothing to return; `prev` and
`next` only answer for versions that are in the index.

```python
ms = Migrations()
for name in ["1_a.up.sql", "1_a.down.sql", "3_b.up.sql"]:
    ms.append(parse(name))
ms.first()     # 1
ms.next(1)     # 3
ms.prev(3)     # 1
ms.down(3)     # None
```

File-system drivers raise `DuplicateMigrationError` when two files share a
version and direction; the other drivers raise `ValueError`.

## Drivers

Every driver derives from `migsource.driver.Driver` and offers:

| method               | result                                        |
|----------------------|-----------------------------------------------|
| `first()`            | the lowest version                            |
| `prev(version)`      | the version before `version`                  |
| `next(version)`      | the version after `version`                   |
| `read_up(version)`   | `(binary file, identifier)` for the up script |
| `read_down(version)` | `(binary file, identifier)` for the down script |
| `close()`            | release the source                            |

A missing version raises `FileNotFoundError`. Drivers are context managers;
leaving a `with` block calls `close()`.

### In-memory file system (`migsource.vfs`)

```python
from migsource.vfs import MapFileSystem, with_instance

fs = MapFileSystem({
    "1_foobar.up.sql": "1 up",
    "1_foobar.down.sql": "1 down",
    "3_foobar.up.sql": "3 up",
})
source = with_instance(fs, "")   # an empty search path means "/"
source.first()                   # 1
body, identifier = source.read_up(3)
body.read()                      # b"3 up"
identifier                       # "foobar"
```

Directories are implied by the paths of the files; subdirectories are
skipped when looking for migrations.

### A directory on disk (`migsource.httpfs`)

```python
from migsource.httpfs import DirFileSystem, new

source = new(DirFileSystem("db"), "migrations")
version = source.first()
body, identifier = source.read_up(version)
```

`DirFileSystem` keeps names inside its root. `new` raises
`NotADirectoryError` when the path is a file and `FileNotFoundError` when it
does not exist. `httpfs.PartialDriver` implements everything except `open`
and can be subclassed with any object whose `open(name)` returns a binary
file, or for a directory an object with `readdir()` and `close()`.

### Named assets (`migsource.bindata`)

```python
from migsource.bindata import resource, with_instance

assets = {"1_init.up.sql": b"CREATE TABLE t (id int);"}
source = with_instance(resource(assets, assets.__getitem__))
```

`with_instance` raises `TypeError` for anything other than an `AssetSource`.

### In-memory stub (`migsource.stub`)

`Stub` serves the migrations placed in its `migrations` attribute; the body
of each is its identifier, and the identifier returned is
`"<version>.up.stub"` or `"<version>.down.stub"`. It is meant for tests.

### Hosted repositories

`migsource.github.Github` reads a directory of a GitHub repository through
the contents API:

```
github://<owner>/<repo>/<path>#<ref>
github://<user>:<token>@<owner>/<repo>/<path>#<ref>
```

The token is sent as a bearer token. `with_instance(GithubClient(...),
GithubConfig(owner=..., repo=..., path=..., ref=...))` uses a client you
build yourself. Pointing at a file rather than a directory raises
`NoDirError`.

`migsource.github_ee.GithubEE` does the same against an enterprise server
at `https://<host>/api/v3`, using basic authentication:

```
github-ee://<user>:<password>@<host>/<owner>/<repo>/<path>?verify-tls=false#<ref>
```

`verify-tls` accepts `1 t T TRUE true True 0 f F FALSE false False`; any
other value leaves verification on.

`migsource.gitlab.Gitlab` reads a directory of a GitLab project, following
pagination 100 entries at a time; an empty host means `gitlab.com`:

```
gitlab://<user>:<token>@<host>/<project-id>/<path>#<ref>
```

Missing credentials raise `NoUserInfoError` or `NoAccessTokenError`, and any
answer other than HTTP 200 raises `InvalidResponseError`.

### Opening by URL

Importing a driver module registers it under a scheme: `stub`,
`go-bindata`, `godoc-vfs`, `github`, `github-ee` and `gitlab`.

```python
import migsource.stub
from migsource.driver import list_drivers, open_source

source = open_source("stub://")
"stub" in list_drivers()   # True
```

`register(name, driver)` adds your own; registering a name twice, opening a
URL without a scheme, or opening an unknown scheme raises `ValueError`. The
`go-bindata` and `godoc-vfs` drivers cannot be opened from a URL and raise
`RuntimeError`; use their `with_instance` functions.

## Utilities

`migsource.util.filter_custom_query(url)` drops every query parameter whose
name starts with `x-` and re-encodes the rest with sorted keys.
`MultiError` joins several errors' messages with `" and "`, and `suint(n)`
raises `ValueError` for negative numbers.

## What it does not do

- No driver is registered for `file://` URLs; read a directory on disk with
  `httpfs.new(DirFileSystem(...), path)`.
- It does not apply migrations or track versions in a database, and it has
  no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```