# Copyright 2020 Nokia
# Licensed under the Apache License 2.0.
# SPDX-License-Identifier: Apache-2.0
"""
This is a simple example of how to use the gnmi_pg helpers from Python.
First, deploy the SR Linux container using containerlab:

```
CLAB_LABDIR_BASE=/tmp \
sudo -E clab deploy -c -t srlinux.dev/clab-srl
```

Then run this script:

python examples/example.py
"""

from gnmi_pg import gnmilib, render
from gnmi_pg.types import CallContext, GetParams, TLSInit, UserCredentials

options = gnmilib.setup_gnmi_secure_transport(TLSInit(skip_verify=True))
ctx = CallContext.with_timeout(10)
with gnmilib.dial(gnmilib.resolve_target("srl"), options, ctx) as channel:
    ctx = gnmilib.populate_md_credentials(ctx, UserCredentials(username="admin", password="NokiaSrl1!"))
    print(render.format_capabilities(gnmilib.capabilities(channel, ctx)))

    request = gnmilib.new_get_request(
        GetParams(xpaths=["/interface[name=mgmt0]/oper-state"], dtype=2)
    )
    print(render.format_get_response(gnmilib.get(channel, ctx, request)))
