"""
Output layout for pass files.

Pass files are grouped per cycle:
- <dest_dir>/cCCC/ holds all passes of cycle CCC
- File names keep the product type and baseline of the input granules and
  replace the time stamps by cycle and pass: <prefix>CCC_PPP<suffix>.nc
"""

from pathlib import Path


def get_pass_directory(dest_dir, cycle, create=True):
    """
    Get the directory holding all pass files of one cycle.

    Parameters
    ----------
    dest_dir : str or Path
        Destination directory of the combiner run.
    cycle : int
        Cycle number.
    create : bool, optional
        Create the directory if it does not exist (default True).
        Creation is idempotent.

    Returns
    -------
    Path
        Full path: dest_dir/cCCC

    Example
    -------
    >>> get_pass_directory('/data/s3a', 15)
    Path('/data/s3a/c015')
    """
    directory = Path(dest_dir).expanduser() / f"c{int(cycle):03d}"
    if create:
        directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_pass_filename(product_name, cycle, pass_number, prefix=(0, 15), suffix=(76, 94)):
    """
    Build the pass file name from the product name of a contributing granule.

    Parameters
    ----------
    product_name : str
        ``product_name`` attribute of the first granule of the pass.
    cycle, pass_number : int
        Pass key.
    prefix, suffix : (int, int)
        Slices of the product name kept before and after the pass key.

    Returns
    -------
    str
        <product_name[prefix]>CCC_PPP<product_name[suffix]>.nc

    Example
    -------
    >>> name = "S3A_SR_2_WAT____20170301T000000_..._MAR_O_NT_002.SEN3"
    >>> get_pass_filename(name, 15, 240)
    'S3A_SR_2_WAT___015_240....nc'
    """
    head = product_name[prefix[0]:prefix[1]]
    tail = product_name[suffix[0]:suffix[1]].strip()
    return f"{head}{int(cycle):03d}_{int(pass_number):03d}{tail}.nc"


def get_pass_path(dest_dir, product_name, cycle, pass_number,
                  prefix=(0, 15), suffix=(76, 94), create=True):
    """
    Get the full path of a pass file, creating its cycle directory if needed.

    Returns
    -------
    Path
        dest_dir/cCCC/<pass file name>
    """
    directory = get_pass_directory(dest_dir, cycle, create=create)
    return directory / get_pass_filename(product_name, cycle, pass_number, prefix, suffix)
