# hwinspect

`hwinspect` reads the hardware of a Linux host from sysfs and procfs and
returns it as plain Python objects. You can print these objects and
serialise them to JSON or YAML. Every reader takes a root directory (the
"chroot"). You can point it at the live system (`/`), at a bind-mounted
host tree, or at an unpacked snapshot.

The package covers:

- **memory** (`hwinspect.memory.area`): total physical and usable bytes, and the supported huge page sizes
- **CPU caches** (`hwinspect.memory.cache`, `hwinspect.memory.caches`): the caches of each NUMA node, with the logical processors that share each one
- **topology** (`hwinspect.topology`): SMP or NUMA, the nodes, the distances between them, and the memory of each node
- **network** (`hwinspect.net`): NICs, their MAC addresses, their PCI addresses and their `ethtool -k` features
- **PCI** (`hwinspect.pci`, `hwinspect.pciaddress`): PCI addresses, modalias decoding, and device lookup
- **product** (`hwinspect.product`): a record of product identification fields
- **snapshots** (`hwinspect.snapshot.unpack`): unpacking `.tar.gz` snapshots of the pseudofiles

## Options and environment

`hwinspect.option` builds settings with `with_chroot`, `with_snapshot`,
`with_alerter`, `with_null_alerter`, `with_disable_tools` and
`with_path_overrides`, and combines them with `merge`. When a field is given
more than once, the last one wins. Any field left unset is filled from the
environment:

| Variable                       | Effect                                                        |
|--------------------------------|---------------------------------------------------------------|
| `HWINSPECT_CHROOT`             | root to read sysfs/procfs from (default `/`)                  |
| `HWINSPECT_DISABLE_WARNINGS`   | if set, warnings are discarded instead of written to stderr   |
| `HWINSPECT_DISABLE_TOOLS`      | if set, `enable_tools` defaults to `False`                    |
| `HWINSPECT_SNAPSHOT_PATH`      | default snapshot path                                         |
| `HWINSPECT_SNAPSHOT_ROOT`      | default snapshot unpack directory                             |
| `HWINSPECT_SNAPSHOT_EXCLUSIVE` | if set, the default snapshot options are exclusive            |
| `HWINSPECT_SNAPSHOT_PRESERVE`  | if set, `cleanup` leaves the unpacked snapshot in place       |

```python
from hwinspect.option import merge, with_chroot, with_disable_tools

opts = merge(with_chroot("/host"), with_disable_tools())
print(opts.chroot)        # "/host"
print(opts.enable_tools)  # False
```

An alerter is any object with a `warning(msg, *args)` method, such as a
`logging.Logger`. `env_or_default_alerter()` returns one that writes to
stderr, or the silent `NULL_ALERTER` when warnings are disabled.

## Reading hardware

```python
from hwinspect.option import env_or_default_alerter
from hwinspect.memory.area import load_memory
from hwinspect.topology import load_topology
from hwinspect.net import load_net

alerter = env_or_default_alerter()

memory = load_memory("/", alerter)  # raises MemoryInfoError if MemTotal is unreadable
print(memory)                     # e.g. memory (32GB physical, 31GB usable)
print(memory.json_string(True))   # {"memory": {...}}

topology = load_topology("/", alerter)
print(topology)                   # e.g. topology NUMA (2 nodes)
for node in topology.nodes:
    print(node, node.distances, node.memory)
    for cache in node.caches:
        print("  ", cache)        # e.g. L1d cache (32 KB) shared with logical processors: 0,12

network = load_net("/", True, alerter)
for nic in network.nics:
    print(nic, nic.mac_address, nic.pci_address)
print(network.yaml_string())
```

If sysfs has no memory block information, the physical memory total is taken
from the kernel's boot line in `var/log/syslog*` under the root, `.gz` files
included. If that also fails, it falls back to the usable total.

The lower-level readers can be called on their own. In `hwinspect.memory.area`
these are `area_for_node`, `memory_block_size_bytes`,
`total_physical_bytes_from_path`, `total_physical_bytes_from_syslog`,
`total_usable_bytes_from_path` and `supported_page_sizes`. The others are
`hwinspect.memory.caches.caches_for_node`, `hwinspect.topology.distances_for_node`
and `hwinspect.topology.topology_nodes`. `hwinspect.net` also provides
`nics`, `net_device_mac_address`, `net_device_pci_address`,
`net_device_capabilities` (which runs `ethtool -k`) and `parse_ethtool_feature`.

`hwinspect.memory.area.Info.from_dict` rebuilds memory information from its
`to_dict()` form. `CacheType.from_json` and `Architecture.from_json` parse
their serialised names without regard to case.

## PCI addresses and devices

```python
from hwinspect.pciaddress import from_string
from hwinspect.pci import Info, parse_modalias_data

addr = from_string("0000:03:00.A")
print(str(addr))                      # "0000:03:00.a"
print(from_string("03:00.0"))         # domain defaults to "0000"
print(from_string("not-an-address"))  # None

# The expected length counts the trailing newline of the sysfs file.
ids = parse_modalias_data("pci:v000010DEd00001C82sv00001043sd00008613bc03sc00i00\n")
print(ids.vendor_id, ids.product_id)  # "10de" "1c82"

pci = Info(chroot="/")
for device in pci.list_devices():
    print(device)   # e.g. 0000:03:00.0 -> driver: 'nouveau' class: 'unknown' vendor: 'unknown' product: 'unknown'
```

`pci.Info.get_device` reads a device's modalias, revision and driver link,
and its NUMA node when `architecture` is `Architecture.NUMA`.
`pci.Info.parse_device` builds a device from an address and a modalias
string alone. Vendor, product, class and subclass names come from the
`vendors`, `products` and `classes` dictionaries of the `Info`. Any entry
not found there is named `unknown`.

## Snapshots

```python
from hwinspect.snapshot.unpack import OWN_TARGET_DIRECTORY, cleanup, unpack, unpack_into
from hwinspect.topology import load_topology

root = unpack("machine.tar.gz")   # unpacked into a fresh temporary directory
try:
    print(load_topology(root))
finally:
    cleanup(root)

# Unpack only if the chosen directory is empty; returns whether it unpacked.
unpack_into("machine.tar.gz", "/srv/snap", OWN_TARGET_DIRECTORY)
```

`untar(root, reader)` extracts a tar.gz stream. Only directories, regular
files and symlinks are restored.

## Helpers

```python
from hwinspect.unitutil import amount_string
from hwinspect.util import concat_strings, safe_int_from_file

amount_string(2048)                      # (1024, "KB")
concat_strings("foo ", " bar ", " baz")  # "foo  bar  baz"
safe_int_from_file("/sys/devices/system/node/node0/cpu0/online")  # -1 on any failure
```

## What the package does not do

- It has no command-line tool. It is used as a library only.
- It cannot create snapshots. It can neither copy a live system's pseudofiles into a tree nor pack a tree into an archive. It only unpacks and cleans up existing ones.
- It does not load snapshots by itself. The snapshot and path-override settings in `hwinspect.option` are only records. To read from a snapshot, unpack it and pass its directory as the chroot.
- It does not read a PCI ID database. `pci.Info` starts with empty `vendors`, `products` and `classes`, which the caller fills.
- It does not read product (DMI) information from the system. `hwinspect.product.Info` only holds, formats and serialises the fields you give it.
- It does not fill in the CPU cores of topology nodes. `Node.cores` stays empty.