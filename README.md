# targeting-engine

A small ad-delivery service. Given the app a user is in, their operating
system and their country, it answers with the active campaigns whose
targeting rules allow that combination. It has no dependencies outside
the Python standard library.

## Running the server

```
targeting-engine
```

This starts a threaded HTTP server (from `wsgiref`) that stores campaigns
and targeting rules in an SQLite database, seeds a few sample campaigns
(`spotify`, `duolingo`, `subwaysurfer`) with their rules, and shuts down
on SIGINT or SIGTERM. Each request is logged at INFO level with the client
address, method, request URI, protocol, status code and elapsed time.

Options:

| Option              | Default     | Meaning                               |
|---------------------|-------------|---------------------------------------|
| `--host`            | all         | address to listen on                  |
| `--port`            | `8080`      | port to listen on                     |
| `--database`        | `:memory:`  | path of the SQLite database           |
| `--no-health-check` | off         | do not serve `/health`                |

The command exits with status 1 if the database cannot be opened or the
server cannot bind its port, and 0 after a clean shutdown. If the sample
data cannot be stored (for instance because a database file given with
`--database` already holds it), a warning is logged and the server starts
anyway.

## The delivery endpoint

`GET /v1/delivery?app=<app>&os=<os>&country=<country>`

All three query parameters are required.

| Outcome                            | Status | Body                                  |
|------------------------------------|--------|---------------------------------------|
| One or more campaigns match        | 200    | JSON list of `{"cid", "img", "cta"}`  |
| No campaign matches                | 204    | empty                                 |
| A parameter is missing or empty    | 400    | `{"error":"missing app param"}` etc.  |
| The lookup fails                   | 500    | `{"error":"internal server error"}`   |
| Any method other than GET          | 405    | empty                                 |

Example request and response against the sample data:

```
GET /v1/delivery?app=com.gametion.ludokinggame&os=android&country=germany

200 OK
Content-Type: application/json

[{"cid":"duolingo","img":"https://somelink2","cta":"Install"},{"cid":"subwaysurfer","img":"https://somelink3","cta":"Play"}]
```

When the health check is enabled, `GET /health` answers `200` with the
plain-text body `OK`. Any other path answers `404`.

## Targeting rules

Each campaign may carry at most one rule per dimension: `APP`, `COUNTRY`
or `OS`. A rule is either `INCLUDE` (the request value must be in the
rule's list) or `EXCLUDE` (it must not be). Values are compared without
regard to case. A campaign with no rules matches every request; only
campaigns with status `ACTIVE` are ever delivered.

## Using it as a library

The modules are:

- `targeting_engine.models` — `Campaign`, `CampaignResponse`,
  `TargetingRule`, `DeliveryRequest`, `ErrorResponse` and the enums
  `Status`, `RuleType`, `DimensionType`.
- `targeting_engine.service` — `TargetingService`, the
  `CampaignRepository` protocol and `InvalidRequestError`.
- `targeting_engine.repository` — `SqlRepository`, the SQLite-backed
  store, and `CampaignNotFoundError`.
- `targeting_engine.handlers` — `DeliveryHandler`, the WSGI handler for
  the delivery endpoint.
- `targeting_engine.middleware` — `LoggingMiddleware`, a WSGI wrapper that
  logs each request.
- `targeting_engine.app` — `create_app` and the `main` command.

```python
from wsgiref.simple_server import make_server

from targeting_engine.app import create_app
from targeting_engine.models import DeliveryRequest
from targeting_engine.repository import SqlRepository
from targeting_engine.service import TargetingService

with SqlRepository("campaigns.db") as repository:
    repository.init_test_data()
    service = TargetingService(repository)

    # Direct lookups
    matches = service.get_matching_campaigns(
        DeliveryRequest(app="com.example.app", os="iOS", country="Canada")
    )
    print([match.to_dict() for match in matches])

    # Or serve over HTTP
    app = create_app(service, True)
    make_server("", 8080, app).serve_forever()
```

Any object with `get_campaigns()` and `get_targeting_rules()` methods can
stand in for `SqlRepository`.

`get_matching_campaigns` raises `InvalidRequestError` when any of the three
request fields is empty. `SqlRepository(database, active_only=False)`
returns only `ACTIVE` campaigns from `get_campaigns` when `active_only` is
set; `save_campaign` inserts or updates by id, while `save_targeting_rule`
raises `sqlite3.IntegrityError` for a second rule on the same dimension or
for an unknown campaign. Used as a context manager it closes its
connection on exit.

## What it does not do

- Storage is SQLite only; there is no client for a separate database
  server. With the default `:memory:` database everything is lost when
  the server stops.
- There is no HTTP interface for creating or editing campaigns and rules;
  they are managed through `SqlRepository` in Python.
- Settings come from command-line options only, not from environment
  variables or configuration files.