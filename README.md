# oapigen

`oapigen` holds the configuration model and command-line handling of an
OpenAPI code generator, plus two small reference services: an in-memory pet
store and an authenticated "things" service, both served as WSGI
applications.

## Installing

Install the package with your usual Python package installer. It needs
Python 3.10 or later and PyYAML. The `test` extra adds pytest.

## Generator configuration

`oapigen.config.Configuration` describes what the generator should produce:
a package name, `GenerateOptions` (chi, echo, gin and gorilla servers, strict
server, client, models, embedded spec), `CompatibilityOptions`,
`OutputOptions`, an import mapping and a list of `AdditionalImport`s.

```python
from oapigen.config import Configuration, ConfigurationError

config = Configuration.from_dict({"package": "api"})
config = config.update_defaults()   # echo server, models and embedded spec when nothing is selected
config.validate()                   # raises ConfigurationError on a bad setup
print(config.to_dict())
```

`from_dict` rejects unknown keys and values of the wrong type. `to_dict`
leaves out empty values. `validate` rejects a configuration without a
package name, or one asking for more than one of the chi, echo and gin
servers at once.

### Extension values

Specification extensions such as `x-go-type-name` or `x-omitempty` carry raw
JSON text. `oapigen.extension` decodes them (`ext_string`, `ext_type_name`,
`ext_parse_go_field_name`, `ext_parse_omit_empty`,
`ext_parse_go_json_ignore`, `ext_extra_tags`) and raises `ExtensionError`
when a value is not text or has the wrong shape:

```python
from oapigen.extension import ext_type_name

ext_type_name('"uint64"')   # -> "uint64"
```

### Command-line arguments and configuration files

`oapigen.cli` turns command-line arguments and a YAML configuration file into
one `RunConfiguration` (a `Configuration` plus an output file):

```python
from oapigen.cli import parse_args, resolve_configuration

args = parse_args(["-config", "cfg.yaml", "petstore.yaml"])
run = resolve_configuration(args)
print(run.to_dict())
```

Both the current file format and the older one (`OldConfiguration`, with
keys such as `generate`, `include-tags` and `templates`) are accepted.
`infer_old_config_style` decides which is in use: the `-old-config-style`
flag wins, then a file that parses in only one format, then the presence of
any deprecated flag (`-generate`, `-include-tags`, `-exclude-tags`,
`-templates`, `-import-mapping`, `-exclude-schemas`,
`-response-type-suffix`, `-alias-types`). In the current style those flags
are rejected; in the older style they fill whatever the file leaves empty,
and `load_template_overrides` reads the templates directory. Every problem
is raised as `ConfigurationError`.

### What is not included

The package stops at the resolved configuration. It does not load OpenAPI
specifications, has no templates and writes no code, and there is no
command that runs the generator.

## The pet store

`oapigen.petstore.PetStore` keeps `Pet`s in memory; new pets get ids
starting at 1000.

```python
from oapigen.petstore import NewPet, PetStore, PetNotFoundError

store = PetStore()
pet = store.add_pet(NewPet(name="Spot", tag="TagOfSpot"))
store.find_pets(tags=["TagOfSpot"], limit=None)
store.find_pet_by_id(pet.id)
store.delete_pet(pet.id)
```

Looking up or deleting a missing pet raises `PetNotFoundError`.
`oapigen.strict.StrictPetStore` offers the same operations but answers with
`JSONResponse` and `NoContentResponse` objects carrying a status code, with
a not-found error body instead of an exception.

`oapigen.webapp.create_app` wraps either kind of store in a WSGI application
serving `GET /pets` (query parameters `tags` and `limit`), `POST /pets`,
`GET /pets/{id}` and `DELETE /pets/{id}`. Requests that do not fit the API
(unknown path, bad integer, missing or malformed JSON body) get a 400
answer. With a plain store a new pet is answered with 201; with a strict
store, with 200.

To serve it with the standard library's server, on port 8080 by default:

```
oapigen-petstore
oapigen-petstore --port 9000 --strict
```

## The things service

`oapigen.auth` reads `Authorization: Bearer <jws>` headers
(`get_jws_from_headers`), reads the list of permissions held under the
`perms` claim of a token (`get_claims_from_token`) and checks them against
required scopes (`check_token_claims`, `authenticate`). Failures raise
`AuthenticationError` or one of its subclasses `NoAuthHeaderError`,
`InvalidAuthHeaderError` and `ClaimsInvalidError`.

```python
from oapigen.auth import get_jws_from_headers

get_jws_from_headers({"Authorization": "Bearer token"})   # -> "token"
```

`oapigen.things.ThingStore` keeps `Thing`s, numbered from 0 and listed in id
order. `oapigen.things.create_app(store, validator)` builds a WSGI
application on `/things`: `GET` needs any valid token, `POST` needs a token
with the `things:w` permission; failed authentication is answered with 403.

The validator is any object with a `validate_jws(jws)` method that returns
the token's claims as a mapping, or raises. The package ships no such
validator, issues no tokens and has no command that runs this service.