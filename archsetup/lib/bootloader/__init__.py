from .systemd_boot import KernelCmdline, LoaderConf, LoaderEntry, loader_entries, write_loader_files

__all__ = [
	'KernelCmdline',
	'LoaderConf',
	'LoaderEntry',
	'loader_entries',
	'write_loader_files',
]
